"""
Timezone-aware datetime utilities.

This module provides utilities for working with timezone-aware datetimes,
ensuring consistent handling across the application.
"""

from datetime import date, datetime, time, timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo

# UTC timezone constant
UTC = timezone.utc


def now_utc() -> datetime:
    """
    Get current UTC datetime (timezone-aware).

    Replaces datetime.utcnow() which is deprecated in Python 3.12+.

    Returns:
        datetime: Current UTC time with tzinfo set to UTC
    """
    return datetime.now(UTC)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Ensure datetime is timezone-aware and in UTC.

    Args:
        dt: datetime to convert (can be None, naive, or timezone-aware)

    Returns:
        Optional[datetime]: UTC timezone-aware datetime, or None if input is None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        # Naive datetime - assume UTC
        return dt.replace(tzinfo=UTC)

    # Already timezone-aware - convert to UTC
    return dt.astimezone(UTC)


def end_of_day_utc(day: date, tz: Union[str, ZoneInfo]) -> datetime:
    """
    Last instant of a calendar day in the given timezone, expressed in UTC.

    Example:
        >>> end_of_day_utc(date(2024, 1, 20), "Asia/Muscat")
        datetime(2024, 1, 20, 19, 59, 59, 999999, tzinfo=timezone.utc)
    """
    zone = ZoneInfo(tz) if isinstance(tz, str) else tz
    return datetime.combine(day, time.max, tzinfo=zone).astimezone(UTC)


def due_instant(due: Union[date, datetime], tz: Union[str, ZoneInfo]) -> datetime:
    """
    Instant at which a due value expires.

    Datetimes are instants (naive means UTC); plain dates expire at the
    end of that day in the given timezone.
    """
    if isinstance(due, datetime):
        return ensure_utc(due)
    return end_of_day_utc(due, tz)


def to_naive_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Convert to naive UTC for storage columns without timezone support."""
    if dt is None:
        return None
    return ensure_utc(dt).replace(tzinfo=None)


def split_due_value(due: Optional[Union[date, datetime]]) -> tuple[Optional[datetime], bool]:
    """
    Storage form of a due value: (naive UTC datetime, is_date_only).
    """
    if due is None:
        return None, False
    if isinstance(due, datetime):
        return to_naive_utc(due), False
    return datetime.combine(due, time.min), True


def join_due_value(stored: Optional[datetime], date_only: bool) -> Optional[Union[date, datetime]]:
    """Inverse of split_due_value."""
    if stored is None:
        return None
    if date_only:
        return stored.date()
    return ensure_utc(stored)
