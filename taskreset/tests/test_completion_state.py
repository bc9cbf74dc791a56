"""Tests for completion/skip staleness decisions."""

import pytest

from taskreset.models import TaskRecord
from taskreset.services.completion_state import CompletionStateResolver
from taskreset.utils.timezone import CalendarClock
from taskreset.tests.helpers import JST, jst

TODAY = jst(2025, 9, 5, 5, 30)
EARLIER_TODAY = jst(2025, 9, 5, 0, 10)
YESTERDAY = jst(2025, 9, 4, 21, 0)


@pytest.fixture
def resolver():
    return CompletionStateResolver(CalendarClock(JST))


def daily(**fields):
    return TaskRecord(id='t1', period='daily', **fields)


class TestDoneState:

    def test_done_yesterday_is_stale(self, resolver):
        task = daily(done=True, completed_at=YESTERDAY)
        assert resolver.needs_reset(task, TODAY)

    def test_done_today_is_kept(self, resolver):
        task = daily(done=True, completed_at=EARLIER_TODAY)
        assert not resolver.needs_reset(task, TODAY)

    def test_completed_at_today_without_done_flag_is_stale(self, resolver):
        task = daily(done=False, skipped=True, skipped_at=EARLIER_TODAY, completed_at=EARLIER_TODAY)
        assert resolver.needs_reset(task, TODAY)

    def test_done_without_completed_at_is_kept(self, resolver):
        task = daily(done=True, completed_at=None)
        assert not resolver.needs_reset(task, TODAY)

    def test_string_timestamps_are_understood(self, resolver):
        assert resolver.needs_reset(daily(done=True, completed_at='2025-09-04T12:00:00+09:00'), TODAY)
        assert not resolver.needs_reset(daily(done=True, completed_at='2025-09-05T01:00:00+09:00'), TODAY)

    def test_malformed_completed_at_behaves_as_absent(self, resolver):
        task = daily(done=True, completed_at='not a date')
        assert not resolver.needs_reset(task, TODAY)


class TestSkipFallbackChain:

    def test_skipped_at_today_is_kept(self, resolver):
        task = daily(skipped=True, skipped_at=EARLIER_TODAY, updated_at=YESTERDAY)
        assert not resolver.needs_reset(task, TODAY)

    def test_skipped_at_yesterday_is_stale(self, resolver):
        """skipped_at wins over updated_at even when updated_at is today."""
        task = daily(skipped=True, skipped_at=YESTERDAY, updated_at=EARLIER_TODAY)
        assert resolver.needs_reset(task, TODAY)

    def test_updated_at_today_used_when_skipped_at_missing(self, resolver):
        task = daily(skipped=True, skipped_at=None, updated_at=EARLIER_TODAY)
        assert resolver.is_skipped_today(task, TODAY)
        assert not resolver.needs_reset(task, TODAY)

    def test_updated_at_yesterday_used_when_skipped_at_missing(self, resolver):
        task = daily(skipped=True, skipped_at=None, updated_at=YESTERDAY)
        assert resolver.needs_reset(task, TODAY)

    def test_no_timestamps_assumes_skipped_today(self, resolver):
        task = daily(skipped=True)
        assert resolver.is_skipped_today(task, TODAY)
        assert not resolver.needs_reset(task, TODAY)

    def test_not_skipped_is_never_skipped_today(self, resolver):
        task = daily(skipped=False, skipped_at=EARLIER_TODAY)
        assert not resolver.is_skipped_today(task, TODAY)


class TestMixedState:

    def test_both_flags_stale_done(self, resolver):
        task = daily(done=True, completed_at=YESTERDAY, skipped=True, skipped_at=EARLIER_TODAY)
        assert resolver.needs_reset(task, TODAY)

    def test_both_flags_stale_skip(self, resolver):
        task = daily(done=True, completed_at=EARLIER_TODAY, skipped=True, skipped_at=YESTERDAY)
        assert resolver.needs_reset(task, TODAY)

    def test_both_flags_current(self, resolver):
        task = daily(done=True, completed_at=EARLIER_TODAY, skipped=True, skipped_at=EARLIER_TODAY)
        assert not resolver.needs_reset(task, TODAY)


class TestEligibility:

    def test_weekly_legacy_without_weekdays_is_stale(self, resolver):
        task = TaskRecord(id='w1', period='weekly', days_of_week=None, done=True, completed_at=YESTERDAY)
        assert resolver.needs_reset(task, TODAY)

    def test_irregular_is_never_reset(self, resolver):
        task = TaskRecord(id='i1', period='不定期', done=True, completed_at=YESTERDAY)
        assert not resolver.needs_reset(task, TODAY)

    def test_unknown_period_is_never_reset(self, resolver):
        task = TaskRecord(id='u1', period=None, done=True, completed_at=YESTERDAY)
        assert not resolver.needs_reset(task, TODAY)
