"""Decides whether a task's done/skipped state still belongs to today.

The skip check falls back from ``skipped_at`` to ``updated_at`` and finally to
"skipped today" when neither timestamp is usable. The order matters for rows
written before ``skipped_at`` existed and must not be rearranged.
"""

import logging
from datetime import datetime
from typing import Any, Optional

from taskreset.models import TaskRecord
from taskreset.utils.recurrence import Recurrence
from taskreset.utils.timezone import CalendarClock, coerce_instant

logger = logging.getLogger(__name__)


class CompletionStateResolver:
    """Staleness checks for completion and skip timestamps."""

    def __init__(self, calendar: CalendarClock):
        self.calendar = calendar

    def _on_day(self, value: Any, today: datetime) -> Optional[bool]:
        """True/False if ``value`` is a usable instant, None otherwise."""
        instant = coerce_instant(value)
        if instant is None:
            return None
        return self.calendar.same_day(instant, today)

    def is_done_today(self, task: TaskRecord, today: datetime) -> bool:
        return bool(task.done) and self._on_day(task.completed_at, today) is True

    def is_skipped_today(self, task: TaskRecord, today: datetime) -> bool:
        if not task.skipped:
            return False

        on_day = self._on_day(task.skipped_at, today)
        if on_day is not None:
            return on_day

        on_day = self._on_day(task.updated_at, today)
        if on_day is not None:
            return on_day

        # No usable timestamp: leave a skip that may have happened moments ago
        return True

    def needs_reset(self, task: TaskRecord, today: datetime) -> bool:
        """
        Check whether the task's completion state is stale.

        Args:
            task: Task to inspect
            today: Any instant on the current civil day

        Returns:
            True if the task is daily/weekly and either its completion or its
            skip belongs to an earlier day
        """
        if not Recurrence.from_task(task).is_resettable:
            return False

        completed_set = coerce_instant(task.completed_at) is not None
        stale_done = completed_set and not self.is_done_today(task, today)
        stale_skip = bool(task.skipped) and not self.is_skipped_today(task, today)

        if stale_done or stale_skip:
            logger.debug(f"Task {task.id} is stale (done={stale_done}, skip={stale_skip})")
            return True
        return False
