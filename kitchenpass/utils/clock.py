"""Clock abstraction and timezone helpers.

Every time-dependent operation receives a :class:`Clock` so that tests can
freeze or advance time. Timestamps are stored in UTC; SQLite hands them back
without tzinfo, so readers normalise them with :func:`ensure_aware`.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Protocol
from zoneinfo import ZoneInfo


class Clock(Protocol):
    def now(self) -> datetime:
        """Return the current time as an aware UTC datetime."""


class SystemClock:
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


def ensure_aware(value: datetime | None) -> datetime | None:
    """Treat naive datetimes as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def parse_ts(value: str | datetime | None) -> datetime | None:
    """Parse an ISO timestamp (or pass through a datetime) as aware UTC."""
    if value is None or isinstance(value, datetime):
        return ensure_aware(value)
    return ensure_aware(datetime.fromisoformat(value))


def business_day(now: datetime, tz_name: str) -> date:
    """Return the calendar date of ``now`` in the restaurant's timezone."""
    return ensure_aware(now).astimezone(ZoneInfo(tz_name)).date()


def day_bounds(day: date, tz_name: str) -> tuple[datetime, datetime]:
    """Return the UTC ``[start, end)`` range of local calendar ``day``."""
    tz = ZoneInfo(tz_name)
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def business_day_bounds(now: datetime, tz_name: str) -> tuple[datetime, datetime]:
    """Return the UTC ``[start, end)`` range of the business day containing ``now``."""
    return day_bounds(business_day(now, tz_name), tz_name)
