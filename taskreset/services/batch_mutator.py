"""Applies task resets to the store in bounded batches."""

import logging
from typing import Iterable, List

from taskreset.services.store import TaskStore, TaskUpdate, MAX_BATCH_SIZE
from taskreset.utils.timezone import Clock

logger = logging.getLogger(__name__)


def reset_fields(reset_at, label: str) -> dict:
    """Column values that return a task to pending, plus the audit stamp."""
    return {
        'done': False,
        'skipped': False,
        'completed_at': None,
        'completed_by': '',
        'skipped_at': None,
        'reset_at': reset_at,
        'reset_label': label,
    }


class BatchMutator:
    """Writes resets batch by batch; a failed batch aborts the rest."""

    def __init__(self, store: TaskStore, clock: Clock, batch_size: int = MAX_BATCH_SIZE):
        self.store = store
        self.clock = clock
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.batch_size = min(batch_size, MAX_BATCH_SIZE)

    def apply(self, task_ids: Iterable[str], label: str) -> int:
        """
        Reset every task in ``task_ids``.

        Args:
            task_ids: Ids of tasks whose completion state is stale
            label: Trigger label recorded in the audit stamp

        Returns:
            Number of tasks written

        Raises:
            SQLAlchemyError: A batch failed; earlier batches stay committed
        """
        fields = reset_fields(self.clock.now(), label)
        pending: List[TaskUpdate] = [(task_id, fields) for task_id in task_ids]

        processed = 0
        for start in range(0, len(pending), self.batch_size):
            batch = pending[start:start + self.batch_size]
            try:
                processed += self.store.commit_batch(batch)
            except Exception as e:
                logger.error(
                    f"Reset batch starting at {start} failed after {processed} tasks were written: {e}"
                )
                raise
            logger.debug(f"Committed reset batch of {len(batch)} tasks")

        return processed
