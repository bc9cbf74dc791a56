"""
Recurrence rule utilities for the daily reset job.

Tasks carry one of three recurrence kinds: daily, weekly (on a set of
weekdays) or irregular (one-off dates). Older rows store the kind and the
weekdays in several human-readable vocabularies, so everything is normalized
here before any decision is made.
"""

from dataclasses import dataclass
from typing import Any, FrozenSet, Iterable, Optional

DAILY = 'daily'
WEEKLY = 'weekly'
IRREGULAR = 'irregular'

RESETTABLE_KINDS = (DAILY, WEEKLY)

_KIND_ALIASES = {
    'daily': DAILY,
    'weekly': WEEKLY,
    'irregular': IRREGULAR,
    '毎日': DAILY,
    '週次': WEEKLY,
    '不定期': IRREGULAR,
}

# Weekday indices are Sunday-first: 0=Sunday .. 6=Saturday
_ENGLISH_WEEKDAYS = {
    'sun': 0, 'sunday': 0,
    'mon': 1, 'monday': 1,
    'tue': 2, 'tues': 2, 'tuesday': 2,
    'wed': 3, 'wednesday': 3,
    'thu': 4, 'thur': 4, 'thurs': 4, 'thursday': 4,
    'fri': 5, 'friday': 5,
    'sat': 6, 'saturday': 6,
}

_JAPANESE_WEEKDAYS = {'日': 0, '月': 1, '火': 2, '水': 3, '木': 4, '金': 5, '土': 6}


def normalize_kind(value: Any) -> Optional[str]:
    """
    Map a stored recurrence kind onto DAILY, WEEKLY or IRREGULAR.

    Returns:
        The canonical kind, or None if the value is not recognized
    """
    if not isinstance(value, str):
        return None
    key = value.strip()
    return _KIND_ALIASES.get(key.lower(), _KIND_ALIASES.get(key))


def normalize_weekday(token: Any) -> Optional[int]:
    """Normalize a single weekday token to a 0..6 index, or None."""
    # bool is an int subclass; True is not Monday
    if isinstance(token, bool):
        return None

    if isinstance(token, int):
        return token if 0 <= token <= 6 else None

    if isinstance(token, str):
        trimmed = token.strip()
        if not trimmed:
            return None
        lower = trimmed.lower()
        if len(lower) == 1 and lower in '0123456':
            return int(lower)
        if lower in _ENGLISH_WEEKDAYS:
            return _ENGLISH_WEEKDAYS[lower]
        # Accept both the bare character and longer forms like 月曜日
        return _JAPANESE_WEEKDAYS.get(trimmed[0])

    return None


def normalize_weekdays(tokens: Any) -> Optional[FrozenSet[int]]:
    """
    Normalize a list of weekday tokens into a set of 0..6 indices.

    Unrecognized tokens are dropped.

    Returns:
        The normalized set, or None when the input is not a list or nothing
        in it was recognized
    """
    if not isinstance(tokens, (list, tuple, set, frozenset)):
        return None

    days = set()
    for token in tokens:
        day = normalize_weekday(token)
        if day is not None:
            days.add(day)

    return frozenset(days) if days else None


@dataclass(frozen=True)
class Recurrence:
    """A task's recurrence rule as seen by the reset job."""

    kind: Optional[str]
    weekdays: Optional[FrozenSet[int]] = None

    @classmethod
    def parse(cls, kind: Any, weekdays: Optional[Iterable[Any]] = None) -> 'Recurrence':
        return cls(kind=normalize_kind(kind), weekdays=normalize_weekdays(weekdays))

    @classmethod
    def from_task(cls, task: Any) -> 'Recurrence':
        """Build the rule from a task's ``period`` and ``days_of_week``."""
        return cls.parse(getattr(task, 'period', None), getattr(task, 'days_of_week', None))

    @property
    def is_resettable(self) -> bool:
        return self.kind in RESETTABLE_KINDS


def is_due_today(recurrence: Recurrence, today_weekday: int) -> bool:
    """
    Check whether a task is scheduled on the current civil day.

    Args:
        recurrence: Normalized recurrence rule
        today_weekday: Today's weekday, 0=Sunday .. 6=Saturday

    Returns:
        True for daily tasks; for weekly tasks True when today is one of the
        weekdays, or when the weekdays are missing (legacy rows are treated
        as due); False for irregular or unknown kinds
    """
    if recurrence.kind == DAILY:
        return True

    if recurrence.kind == WEEKLY:
        if recurrence.weekdays is None:
            return True
        return today_weekday in recurrence.weekdays

    return False
