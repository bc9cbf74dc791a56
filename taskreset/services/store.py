"""Document-store facade used by the reset job.

The job needs only a handful of store capabilities: equality queries on
tasks, get-by-id, merge-writes on the ledger and batched multi-row updates.
They are implemented here on top of Flask-SQLAlchemy so the rest of the job
never touches the session directly.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from taskreset.models import db, Task, RunLedgerEntry

logger = logging.getLogger(__name__)

# Largest number of documents committed in a single batch
MAX_BATCH_SIZE = 500

TaskUpdate = Tuple[str, Dict[str, Any]]

LEDGER_ATTEMPT_FIELDS = ('last_attempt_at', 'last_attempt_label')


class TaskStore:
    """Query and write helpers over the ``tasks`` and ``task_reset_runs`` tables."""

    def __init__(self, session=None):
        self.session = session or db.session

    # ---- tasks ----

    def find_tasks(self, field: str, value: Any) -> List[Task]:
        """Return all tasks whose ``field`` equals ``value``."""
        column = getattr(Task, field)
        return self.session.query(Task).filter(column == value).all()

    def get_task(self, task_id: str) -> Optional[Task]:
        return self.session.get(Task, task_id)

    def commit_batch(self, updates: Sequence[TaskUpdate]) -> int:
        """
        Apply field-level updates to several tasks in one transaction.

        Only the given columns are written; other columns keep whatever value
        is stored at commit time.

        Args:
            updates: (task_id, fields) pairs, at most MAX_BATCH_SIZE

        Returns:
            Number of updates written

        Raises:
            ValueError: Batch exceeds MAX_BATCH_SIZE
            SQLAlchemyError: The write failed (the batch is rolled back)
        """
        if len(updates) > MAX_BATCH_SIZE:
            raise ValueError(f"Batch of {len(updates)} exceeds maximum of {MAX_BATCH_SIZE}")

        try:
            for task_id, fields in updates:
                self.session.query(Task).filter(Task.id == task_id).update(
                    fields, synchronize_session=False
                )
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise

        return len(updates)

    # ---- ledger ----

    def get_ledger_entry(self, date_key: str) -> Optional[RunLedgerEntry]:
        return self.session.get(RunLedgerEntry, date_key)

    def list_ledger_entries(self, limit: int = 30) -> List[RunLedgerEntry]:
        return (
            self.session.query(RunLedgerEntry)
            .order_by(RunLedgerEntry.date_key.desc())
            .limit(limit)
            .all()
        )

    def merge_ledger_entry(self, date_key: str, fields: Dict[str, Any],
                           on_create: Optional[Dict[str, Any]] = None) -> RunLedgerEntry:
        """
        Merge ``fields`` into the ledger entry for ``date_key``.

        Creates the entry when missing, applying ``on_create`` first. If a
        concurrent writer creates the same entry between our read and our
        insert, the insert is retried as an update. Entries that already
        succeeded only accept the attempt fields; everything else is ignored.
        """
        try:
            entry = self._merge(date_key, fields, on_create)
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            logger.info(f"Ledger entry {date_key} created concurrently, merging into it")
            entry = self._merge(date_key, fields, None)
            try:
                self.session.commit()
            except SQLAlchemyError:
                self.session.rollback()
                raise
        except SQLAlchemyError:
            self.session.rollback()
            raise
        return entry

    def _merge(self, date_key: str, fields: Dict[str, Any],
               on_create: Optional[Dict[str, Any]]) -> RunLedgerEntry:
        entry = self.get_ledger_entry(date_key)
        if entry is None:
            entry = RunLedgerEntry(date_key=date_key)
            for key, value in (on_create or {}).items():
                setattr(entry, key, value)
            self.session.add(entry)
        elif entry.succeeded:
            # A finished day only ever takes new attempt stamps
            fields = {key: value for key, value in fields.items() if key in LEDGER_ATTEMPT_FIELDS}
        for key, value in fields.items():
            setattr(entry, key, value)
        self.session.flush()
        return entry
