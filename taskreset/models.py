"""
SQLAlchemy models for the TaskReset service.

The ``tasks`` table is owned by the task-management side of the application;
this service only reads its recurrence and completion columns and clears the
completion columns at day rollover. ``task_reset_runs`` is the per-day ledger
owned by the reset job.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import CheckConstraint, Index
from sqlalchemy.types import DateTime, TypeDecorator

from taskreset.utils.timezone import as_utc

db = SQLAlchemy()

LEDGER_RUNNING = 'running'
LEDGER_SUCCESS = 'success'


class UTCDateTime(TypeDecorator):
    """DateTime column that always hands back aware UTC datetimes.

    SQLite drops tzinfo on the way in, so values are normalized to UTC before
    storage and re-tagged as UTC when loaded.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return as_utc(value).replace(tzinfo=None)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return as_utc(value)


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


class Task(db.Model):
    """A shared household task with its current completion state."""

    __tablename__ = 'tasks'

    id = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(255), nullable=False, default='')

    # Recurrence: 'daily' | 'weekly' | 'irregular' (legacy labels also occur)
    period = db.Column(db.String(32), nullable=True)
    days_of_week = db.Column(db.JSON, nullable=True)

    # Completion state
    done = db.Column(db.Boolean, default=False, nullable=False)
    skipped = db.Column(db.Boolean, default=False, nullable=False)
    completed_at = db.Column(UTCDateTime, nullable=True)
    completed_by = db.Column(db.String(255), default='', nullable=False)
    skipped_at = db.Column(UTCDateTime, nullable=True)
    updated_at = db.Column(UTCDateTime, nullable=True)

    # Audit stamp written by the reset job
    reset_at = db.Column(UTCDateTime, nullable=True)
    reset_label = db.Column(db.String(32), nullable=True)

    __table_args__ = (
        Index('idx_tasks_done', 'done'),
        Index('idx_tasks_skipped', 'skipped'),
    )

    def __repr__(self):
        return f'<Task {self.id} ({self.period}) done={self.done} skipped={self.skipped}>'

    def to_record(self) -> 'TaskRecord':
        return TaskRecord(
            id=self.id,
            period=self.period,
            days_of_week=self.days_of_week,
            done=bool(self.done),
            skipped=bool(self.skipped),
            completed_at=self.completed_at,
            skipped_at=self.skipped_at,
            updated_at=self.updated_at,
        )


class RunLedgerEntry(db.Model):
    """One row per civil day recording the reset job's progress."""

    __tablename__ = 'task_reset_runs'

    date_key = db.Column(db.String(10), primary_key=True)  # YYYY-MM-DD
    status = db.Column(db.String(20), nullable=False, default=LEDGER_RUNNING)
    started_at = db.Column(UTCDateTime, nullable=True)
    finished_at = db.Column(UTCDateTime, nullable=True)
    last_attempt_at = db.Column(UTCDateTime, nullable=True)
    last_attempt_label = db.Column(db.String(32), nullable=True)
    processed_count = db.Column(db.Integer, nullable=True)

    __table_args__ = (
        CheckConstraint(f"status IN ('{LEDGER_RUNNING}', '{LEDGER_SUCCESS}')", name='check_reset_run_status'),
    )

    def __repr__(self):
        return f'<RunLedgerEntry {self.date_key} {self.status}>'

    @property
    def succeeded(self) -> bool:
        return self.status == LEDGER_SUCCESS

    def to_dict(self) -> dict:
        """Serialize RunLedgerEntry to dictionary for JSON responses."""
        return {
            'date_key': self.date_key,
            'status': self.status,
            'started_at': _isoformat(self.started_at),
            'finished_at': _isoformat(self.finished_at),
            'last_attempt_at': _isoformat(self.last_attempt_at),
            'last_attempt_label': self.last_attempt_label,
            'processed_count': self.processed_count,
        }


@dataclass(frozen=True)
class TaskRecord:
    """Detached, loosely typed view of a task used by the reset decisions.

    Timestamp fields are left as ``Any`` because older rows may hold strings
    or other shapes; the resolvers coerce them.
    """

    id: str
    period: Any = None
    days_of_week: Any = None
    done: bool = False
    skipped: bool = False
    completed_at: Any = None
    skipped_at: Any = None
    updated_at: Any = None
