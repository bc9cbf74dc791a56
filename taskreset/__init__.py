"""TaskReset: once-a-day reset of recurring household tasks."""

__version__ = '1.0.0'
