"""
Timezone utilities for the daily reset job.

All "once per day" decisions are made against the civil calendar of a single
configured timezone (``RESET_TIMEZONE``, Asia/Tokyo by default). Timestamps
are stored in UTC; naive datetimes found in older rows are treated as UTC.
"""

import logging
import os
from datetime import date, datetime, timezone
from typing import Any, Optional, Protocol
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = 'Asia/Tokyo'

# Methods that timestamp wrappers from document stores expose
_CONVERTER_NAMES = ('to_datetime', 'toDate', 'to_date')


def get_timezone(tz_name: Optional[str] = None) -> ZoneInfo:
    """Get the timezone used for day boundaries.

    Resolution order: explicit name, Flask config ``RESET_TIMEZONE`` (when an
    app context is active), ``RESET_TIMEZONE`` environment variable, default.

    Returns:
        ZoneInfo for the configured timezone, defaults to Asia/Tokyo
    """
    if tz_name is None:
        from flask import current_app, has_app_context
        if has_app_context():
            tz_name = current_app.config.get('RESET_TIMEZONE')
    if tz_name is None:
        tz_name = os.environ.get('RESET_TIMEZONE', DEFAULT_TIMEZONE)

    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Invalid timezone '{tz_name}', falling back to {DEFAULT_TIMEZONE}")
        return ZoneInfo(DEFAULT_TIMEZONE)


def utc_now() -> datetime:
    """Get the current datetime in UTC (timezone-aware).

    Use this for storing timestamps in the database.
    """
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Clock(Protocol):
    """Source of the current instant."""

    def now(self) -> datetime:
        ...


class SystemClock:
    """Clock backed by the system time."""

    def now(self) -> datetime:
        return utc_now()


class CalendarClock:
    """Maps instants onto civil days in one fixed timezone."""

    def __init__(self, tz: Optional[ZoneInfo] = None):
        self.tz = tz or get_timezone()

    def local(self, instant: datetime) -> datetime:
        return as_utc(instant).astimezone(self.tz)

    def local_date(self, instant: datetime) -> date:
        return self.local(instant).date()

    def today(self, instant: datetime) -> str:
        """Return the sortable ``YYYY-MM-DD`` key of the civil day."""
        return self.local_date(instant).isoformat()

    def weekday(self, instant: datetime) -> int:
        """Return the civil weekday, 0=Sunday through 6=Saturday."""
        # Python counts Monday=0; tasks store Sunday=0
        return (self.local_date(instant).weekday() + 1) % 7

    def same_day(self, a: datetime, b: datetime) -> bool:
        return self.local_date(a) == self.local_date(b)


def coerce_instant(value: Any) -> Optional[datetime]:
    """
    Convert a loosely typed timestamp value into an aware UTC datetime.

    Accepts datetimes, dates (midnight UTC), ISO-8601 strings, epoch seconds
    and objects exposing a ``to_datetime()``, ``toDate()`` or ``to_date()``
    converter. Anything that cannot be interpreted yields None instead of
    raising.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        return as_utc(value)

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)

    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return as_utc(date_parser.isoparse(text))
        except (ValueError, OverflowError):
            return None

    for name in _CONVERTER_NAMES:
        converter = getattr(value, name, None)
        if callable(converter):
            try:
                return coerce_instant(converter())
            except Exception:
                logger.debug(f"Could not convert timestamp value {value!r}")
                return None

    return None
