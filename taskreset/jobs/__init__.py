"""
Background jobs for TaskReset.

This package contains scheduled jobs that run in the background:
- daily_reset: Clear stale done/skipped state on recurring tasks once per day
"""

from taskreset.jobs.daily_reset import (
    run_daily_task_reset,
    reset_tasks_primary,
    reset_tasks_backup,
)

__all__ = [
    'run_daily_task_reset',
    'reset_tasks_primary',
    'reset_tasks_backup',
]
