"""Timestamp helpers shared by the scorers.

Donation timestamps arrive either naive (wall-clock time as recorded by the
client) or timezone-aware. Comparisons between records go through
``as_utc`` so mixed inputs never raise; hour-of-day checks use
``local_hour`` so a naive timestamp keeps the hour it was recorded with.
"""

from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo


def utc_now() -> datetime:
    """Current instant, timezone-aware."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Normalize a timestamp for ordering and gap arithmetic.

    Naive timestamps are treated as UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def local_hour(value: datetime, tz_name: Optional[str] = None) -> int:
    """Hour of day (0-23) used by overnight rules.

    Aware timestamps are converted to ``tz_name`` when one is configured;
    otherwise the timestamp's own wall-clock hour is used.
    """
    if tz_name and value.tzinfo is not None:
        return value.astimezone(ZoneInfo(tz_name)).hour
    return value.hour


def in_wrapping_window(hour: int, start: int, end: int) -> bool:
    """True if ``hour`` falls in a window that may wrap past midnight.

    A window like 22 -> 6 wraps: ``hour >= start or hour < end``.
    A non-wrapping window (start < end) is ``start <= hour < end``.
    """
    if start > end:
        return hour >= start or hour < end
    return start <= hour < end
