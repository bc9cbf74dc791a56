"""Tests for batched reset writes."""

import pytest
from sqlalchemy.exc import OperationalError

from taskreset.models import db, Task
from taskreset.services.batch_mutator import BatchMutator, reset_fields
from taskreset.services.store import TaskStore, MAX_BATCH_SIZE
from taskreset.tests.helpers import jst


class CountingStore(TaskStore):
    """TaskStore that records batch sizes and can fail on a given batch."""

    def __init__(self, fail_on=None):
        super().__init__()
        self.batches = []
        self.fail_on = fail_on

    def commit_batch(self, updates):
        self.batches.append(len(updates))
        if self.fail_on is not None and len(self.batches) == self.fail_on:
            raise OperationalError('UPDATE tasks', {}, Exception('database is locked'))
        return super().commit_batch(updates)


def test_reset_fields_clear_completion_and_stamp():
    stamp = jst(2025, 9, 5, 5, 30)
    assert reset_fields(stamp, '05:30') == {
        'done': False,
        'skipped': False,
        'completed_at': None,
        'completed_by': '',
        'skipped_at': None,
        'reset_at': stamp,
        'reset_label': '05:30',
    }


def test_apply_clears_tasks(app, db_session, clock, make_task):
    task_id = make_task(period='daily', done=True, completed_at=jst(2025, 9, 4, 8),
                        completed_by='user-1', skipped=True, skipped_at=jst(2025, 9, 4, 9))

    store = TaskStore()
    processed = BatchMutator(store, clock).apply([task_id], '05:30')

    task = store.get_task(task_id)
    assert processed == 1
    assert task.done is False
    assert task.skipped is False
    assert task.completed_at is None
    assert task.completed_by == ''
    assert task.skipped_at is None
    assert task.reset_at == clock.now()
    assert task.reset_label == '05:30'


def test_apply_leaves_other_columns(app, db_session, clock, make_task):
    updated = jst(2025, 9, 4, 8)
    task_id = make_task(name='Dishes', period='weekly', days_of_week=['mon'],
                        done=True, completed_at=updated, updated_at=updated)

    BatchMutator(TaskStore(), clock).apply([task_id], '05:30')

    task = db.session.get(Task, task_id)
    assert task.name == 'Dishes'
    assert task.days_of_week == ['mon']
    assert task.updated_at == updated


def test_apply_splits_into_batches(app, db_session, clock, make_task):
    ids = [make_task(period='daily', done=True, completed_at=jst(2025, 9, 4, 8)) for _ in range(7)]
    store = CountingStore()

    processed = BatchMutator(store, clock, batch_size=3).apply(ids, '05:30')

    assert processed == 7
    assert store.batches == [3, 3, 1]
    assert db.session.query(Task).filter_by(done=True).count() == 0


def test_apply_with_nothing_to_do(app, db_session, clock):
    store = CountingStore()
    assert BatchMutator(store, clock).apply([], '05:30') == 0
    assert store.batches == []


def test_failed_batch_aborts_remaining(app, db_session, clock, make_task):
    ids = [make_task(period='daily', done=True, completed_at=jst(2025, 9, 4, 8)) for _ in range(5)]
    store = CountingStore(fail_on=2)

    with pytest.raises(OperationalError):
        BatchMutator(store, clock, batch_size=2).apply(ids, '05:30')

    assert store.batches == [2, 2]
    assert db.session.query(Task).filter_by(done=False).count() == 2
    assert db.session.query(Task).filter_by(done=True).count() == 3


def test_batch_size_is_clamped_to_store_ceiling(app, clock):
    mutator = BatchMutator(TaskStore(), clock, batch_size=MAX_BATCH_SIZE * 4)
    assert mutator.batch_size == MAX_BATCH_SIZE


def test_batch_size_must_be_positive(app, clock):
    with pytest.raises(ValueError):
        BatchMutator(TaskStore(), clock, batch_size=0)


def test_store_rejects_oversized_batch(app, db_session):
    updates = [(f'task-{i}', {'done': False}) for i in range(MAX_BATCH_SIZE + 1)]
    with pytest.raises(ValueError):
        TaskStore().commit_batch(updates)
