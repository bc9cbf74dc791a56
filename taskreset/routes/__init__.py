"""Routes package for the TaskReset admin API."""

from taskreset.routes.resets import resets_bp

__all__ = ['resets_bp']
