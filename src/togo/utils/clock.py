"""
Calendar-day helpers for quota counting

A "day" is local midnight to the next local midnight in the configured
timezone. Windows are half-open [start, end) and returned in UTC, which is
how created_at timestamps are written.
"""

from datetime import datetime, timedelta, timezone, tzinfo
from typing import Callable, Tuple

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_utc(value: datetime) -> datetime:
    """Convert to aware UTC; naive values are taken as UTC already"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def day_window(now: datetime, tz: tzinfo) -> Tuple[datetime, datetime]:
    """
    Return the UTC bounds of the local calendar day containing now

    Args:
        now: Aware datetime (naive values are taken as UTC)
        tz: Timezone that defines the calendar day

    Returns:
        (start, end) with start inclusive and end exclusive, both in UTC
    """
    local = to_utc(now).astimezone(tz)
    start_local = local.replace(hour=0, minute=0, second=0, microsecond=0)
    # Add a day on the calendar, not 24h, so DST days get their real length
    next_day = (start_local + timedelta(days=1)).date()
    end_local = datetime(next_day.year, next_day.month, next_day.day, tzinfo=tz)
    return start_local.astimezone(timezone.utc), end_local.astimezone(timezone.utc)


def next_reset(now: datetime, tz: tzinfo) -> datetime:
    """Next local midnight after now, in UTC"""
    return day_window(now, tz)[1]
