"""Time utility helpers for timezone-aware timestamps."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def now_utc() -> datetime:
    """Return current timezone-aware UTC timestamp."""

    return datetime.now(timezone.utc)


def now_local() -> datetime:
    """Return current timestamp in the host's local timezone."""

    return datetime.now().astimezone()


def datetime_to_ns(value: datetime) -> int:
    """Convert a datetime to integer nanoseconds since the epoch without float rounding.

    Naive values are interpreted as local time.
    """

    aware = value if value.tzinfo is not None else value.astimezone()
    return ((aware - EPOCH) // timedelta(microseconds=1)) * 1000


def ns_to_local_datetime(value_ns: int) -> datetime:
    """Convert integer epoch nanoseconds to an aware local datetime."""

    return (EPOCH + timedelta(microseconds=value_ns // 1000)).astimezone()
