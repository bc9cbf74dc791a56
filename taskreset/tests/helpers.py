"""Shared helpers for TaskReset tests."""

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

JST = ZoneInfo('Asia/Tokyo')


def jst(year, month, day, hour=0, minute=0):
    """Build an aware datetime on the Tokyo civil calendar."""
    return datetime(year, month, day, hour, minute, tzinfo=JST)


class FixedClock:
    """Clock that returns a settable instant."""

    def __init__(self, instant):
        self.instant = instant

    def now(self):
        return self.instant

    def advance(self, **kwargs):
        self.instant = self.instant + timedelta(**kwargs)
