"""Per-day idempotency ledger for the reset job.

Each civil day moves through ``running`` to ``success``; there is no way back.
A run that crashes leaves the day at ``running`` and the next trigger retries
it. The success check is advisory: two triggers firing together may both see
no success and both run, which is harmless because resets are idempotent.
"""

import logging
from typing import List, Optional

from taskreset.models import RunLedgerEntry, LEDGER_RUNNING, LEDGER_SUCCESS
from taskreset.services.store import TaskStore
from taskreset.utils.timezone import Clock

logger = logging.getLogger(__name__)


class IdempotencyLedger:
    """Reads and merge-writes ``task_reset_runs`` rows."""

    def __init__(self, store: TaskStore, clock: Clock):
        self.store = store
        self.clock = clock

    def get(self, date_key: str) -> Optional[RunLedgerEntry]:
        return self.store.get_ledger_entry(date_key)

    def recent(self, limit: int = 30) -> List[RunLedgerEntry]:
        return self.store.list_ledger_entries(limit)

    def check_success(self, date_key: str) -> bool:
        entry = self.get(date_key)
        return entry is not None and entry.succeeded

    def record_attempt(self, date_key: str, label: str) -> RunLedgerEntry:
        """Stamp the attempt time and trigger label without touching status."""
        return self.store.merge_ledger_entry(date_key, {
            'last_attempt_at': self.clock.now(),
            'last_attempt_label': label,
        })

    def begin_run(self, date_key: str, label: str) -> RunLedgerEntry:
        """
        Mark the day as running.

        ``started_at`` is only set when the entry is created. A day that has
        already succeeded keeps its status; only the attempt fields change.
        """
        now = self.clock.now()
        fields = {'last_attempt_at': now, 'last_attempt_label': label}

        existing = self.get(date_key)
        if existing is None or not existing.succeeded:
            fields['status'] = LEDGER_RUNNING
        if existing is not None and existing.started_at is None:
            fields['started_at'] = now

        entry = self.store.merge_ledger_entry(date_key, fields, on_create={'started_at': now})
        logger.info(f"Reset run for {date_key} started (trigger={label}, status={entry.status})")
        return entry

    def complete_run(self, date_key: str, processed_count: int) -> RunLedgerEntry:
        """
        Mark the day as succeeded.

        If another trigger already completed the day, its entry is returned
        unchanged.
        """
        existing = self.get(date_key)
        if existing is not None and existing.succeeded:
            logger.info(
                f"Reset run for {date_key} already completed elsewhere, keeping its result "
                f"({processed_count} tasks reset by this run)"
            )
            return existing

        entry = self.store.merge_ledger_entry(date_key, {
            'status': LEDGER_SUCCESS,
            'finished_at': self.clock.now(),
            'processed_count': processed_count,
        })
        logger.info(f"Reset run for {date_key} succeeded, {processed_count} tasks reset")
        return entry
