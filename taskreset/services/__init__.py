"""Store access and reset decision services."""
