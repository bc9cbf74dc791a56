"""
Daily recurring-task reset job.
"""

from dataclasses import dataclass
import logging
from typing import Dict, Optional

from taskreset.models import Task
from taskreset.services.batch_mutator import BatchMutator
from taskreset.services.completion_state import CompletionStateResolver
from taskreset.services.ledger import IdempotencyLedger
from taskreset.services.store import TaskStore, MAX_BATCH_SIZE
from taskreset.utils.recurrence import Recurrence, is_due_today
from taskreset.utils.timezone import CalendarClock, Clock, SystemClock, get_timezone

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResetSummary:
    processed_count: int
    skipped: bool

    def to_dict(self) -> dict:
        return {'processed_count': self.processed_count, 'skipped': self.skipped}


class ResetOrchestrator:
    """Runs the reset for the current civil day at most once successfully."""

    def __init__(self, store: TaskStore, clock: Clock, calendar: CalendarClock,
                 batch_size: int = MAX_BATCH_SIZE):
        self.store = store
        self.clock = clock
        self.calendar = calendar
        self.ledger = IdempotencyLedger(store, clock)
        self.resolver = CompletionStateResolver(calendar)
        self.mutator = BatchMutator(store, clock, batch_size)

    def fetch_candidates(self) -> Dict[str, Task]:
        """Tasks marked done or skipped, de-duplicated by id."""
        candidates: Dict[str, Task] = {}
        for task in self.store.find_tasks('done', True):
            candidates[task.id] = task
        for task in self.store.find_tasks('skipped', True):
            candidates[task.id] = task
        return candidates

    def run(self, label: str) -> ResetSummary:
        """
        Reset stale daily/weekly tasks for today.

        Steps:
        - short-circuit if today's ledger entry already succeeded
        - mark today as running
        - collect done/skipped tasks and reset the stale ones
        - mark today as succeeded

        Args:
            label: Name of the trigger that fired (e.g. '05:30')

        Returns:
            ResetSummary with the number of tasks reset
        """
        now = self.clock.now()
        today = self.calendar.today(now)

        if self.ledger.check_success(today):
            self.ledger.record_attempt(today, label)
            logger.info(f"Reset for {today} already succeeded, skipping (trigger={label})")
            return ResetSummary(processed_count=0, skipped=True)

        entry = self.ledger.begin_run(today, label)
        if entry.succeeded:
            # Another trigger finished between our check and begin_run
            logger.info(f"Reset for {today} completed concurrently, skipping (trigger={label})")
            return ResetSummary(processed_count=0, skipped=True)

        today_weekday = self.calendar.weekday(now)
        candidates = self.fetch_candidates()

        to_reset = []
        for task in candidates.values():
            record = task.to_record()
            recurrence = Recurrence.from_task(record)

            # Due-today is informational; eligibility depends on staleness only
            due = is_due_today(recurrence, today_weekday)

            if not recurrence.is_resettable:
                continue

            if self.resolver.needs_reset(record, now):
                logger.debug(f"Resetting task {task.id} (kind={recurrence.kind}, due_today={due})")
                to_reset.append(task.id)

        processed = self.mutator.apply(to_reset, label)
        self.ledger.complete_run(today, processed)

        return ResetSummary(processed_count=processed, skipped=False)


def build_orchestrator(clock: Optional[Clock] = None) -> ResetOrchestrator:
    """Build an orchestrator from the current Flask app config."""
    from flask import current_app

    return ResetOrchestrator(
        store=TaskStore(),
        clock=clock or SystemClock(),
        calendar=CalendarClock(get_timezone()),
        batch_size=current_app.config.get('RESET_BATCH_SIZE', MAX_BATCH_SIZE),
    )


def run_daily_task_reset(label: str, clock: Optional[Clock] = None) -> ResetSummary:
    """
    Run the daily reset. Must be called within an app context.

    Store errors are logged and re-raised so the caller (scheduler, API or
    CLI) sees the failure; the next trigger retries the day.
    """
    logger.info(f"Starting daily task reset (trigger={label})")

    try:
        summary = build_orchestrator(clock).run(label)
    except Exception as e:
        logger.error(f"Error in daily task reset (trigger={label}): {e}")
        raise

    logger.info(
        f"Daily task reset complete (trigger={label}): "
        f"processed={summary.processed_count} skipped={summary.skipped}"
    )
    return summary


def reset_tasks_primary():
    """Primary daily trigger."""
    from flask import current_app
    return run_daily_task_reset(current_app.config.get('RESET_PRIMARY_TIME', '05:30'))


def reset_tasks_backup():
    """Backup trigger, a few minutes after the primary."""
    from flask import current_app
    return run_daily_task_reset(current_app.config.get('RESET_BACKUP_TIME', '05:45'))
