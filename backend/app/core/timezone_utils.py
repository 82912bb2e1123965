"""
Timezone utilities for the training scheduler.

All calendar semantics (combining a day with a time of day, bucketing
bookings into days) happen in a single display timezone. Instants are
stored and compared in UTC.
"""

from datetime import date, datetime, time, timedelta
from typing import Optional

import pytz

from app.core.config import settings


def get_display_timezone() -> pytz.BaseTzInfo:
    """
    Get the configured display timezone.

    Returns:
        Display timezone as pytz timezone object
    """
    return pytz.timezone(settings.display_timezone)


def ensure_utc(dt: datetime) -> datetime:
    """
    Return an aware UTC datetime.

    Naive values (as returned by SQLite) are assumed to already be UTC.
    """
    if dt.tzinfo is None:
        return pytz.UTC.localize(dt)
    return dt.astimezone(pytz.UTC)


def combine_local(day: date, time_of_day: time) -> datetime:
    """
    Combine a calendar day with a wall-clock time in the display timezone.

    The UTC offset is looked up for that specific day, so DST changes are
    honoured.

    Args:
        day: Calendar day
        time_of_day: Wall-clock time in the display timezone

    Returns:
        Aware UTC datetime
    """
    tz = get_display_timezone()
    local = tz.localize(datetime.combine(day, time_of_day.replace(tzinfo=None)))
    return local.astimezone(pytz.UTC)


def to_display(dt: datetime) -> datetime:
    """Convert an instant to the display timezone."""
    return ensure_utc(dt).astimezone(get_display_timezone())


def display_date(dt: datetime) -> date:
    """Calendar day of an instant in the display timezone."""
    return to_display(dt).date()


def start_of_display_day(day: date) -> datetime:
    return combine_local(day, time(0, 0))


def end_of_display_day(day: date) -> datetime:
    return combine_local(day, time(23, 59, 59, 999000))


def iter_display_days(start: datetime, end: datetime):
    """
    Yield every calendar day touched by [start, end], in the display timezone.

    Both endpoints are inclusive.
    """
    current = display_date(start)
    last = display_date(end)
    while current <= last:
        yield current
        current += timedelta(days=1)


def format_display_iso(dt: Optional[datetime]) -> Optional[str]:
    """ISO-8601 string of an instant in the display timezone."""
    if dt is None:
        return None
    return to_display(dt).isoformat()
