"""Calendar and recurrence helpers for the reset job."""
