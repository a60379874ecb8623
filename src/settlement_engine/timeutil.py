"""Reporting-timezone date helpers.

Timestamps are stored in UTC. Calendar boundaries (start/end of day, the
``YYYY-MM-DD`` strings shown on documents) are taken in the configured
reporting timezone.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

DATE_FORMAT = "%Y-%m-%d"
_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")

# Last representable instant of a day
END_OF_DAY = time(23, 59, 59, 999999)
# End of day as shown on acts of completion (whole seconds)
END_OF_DAY_SECONDS = time(23, 59, 59)


def parse_date(value: str) -> date:
    """Parse a strict ``YYYY-MM-DD`` string.

    Raises:
        ValueError: On any other format.
    """
    if not _DATE_RE.fullmatch(value):
        raise ValueError(f"date {value!r} does not match YYYY-MM-DD")
    return datetime.strptime(value, DATE_FORMAT).date()


def from_storage(value: datetime) -> datetime:
    """Return a stored timestamp as an aware UTC datetime.

    Some backends (SQLite) hand back naive values; those are UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_storage(value: datetime) -> datetime:
    """Convert an aware datetime to UTC for persistence."""
    if value.tzinfo is None:
        raise ValueError("naive datetimes cannot be stored")
    return value.astimezone(timezone.utc)


def start_of_day(day: date, tz: ZoneInfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def end_of_day(day: date, tz: ZoneInfo, boundary: time = END_OF_DAY) -> datetime:
    return datetime.combine(day, boundary, tzinfo=tz)


def local_date(value: datetime, tz: ZoneInfo) -> date:
    """Calendar day of a stored timestamp in the reporting timezone."""
    return from_storage(value).astimezone(tz).date()


def format_date(value: date | datetime) -> str:
    return value.strftime(DATE_FORMAT)
