"""
Timezone utilities for HourGym.

Space availability is authored in the gym's local wall-clock time while
bookings are stored as UTC instants. These helpers bridge the two.
"""

from datetime import date, datetime, time

import pytz

from .constants import DEFAULT_TIMEZONE


def get_timezone(name: str | None) -> pytz.BaseTzInfo:
    """Resolve an IANA timezone name, falling back to the platform default."""
    return pytz.timezone(name or DEFAULT_TIMEZONE)


def local_wall_time_to_utc(day: date, wall_time: time, tz: pytz.BaseTzInfo) -> datetime:
    """
    Interpret a wall-clock time on a given date in ``tz`` and return a UTC instant.

    A time inside the spring-forward gap is read as standard time, which lands
    just past the gap (02:30 becomes 03:30 daylight time). A time repeated on
    fall-back resolves to its first occurrence.
    """
    naive = datetime.combine(day, wall_time)
    try:
        local = tz.localize(naive, is_dst=None)
    except pytz.NonExistentTimeError:
        local = tz.localize(naive, is_dst=False)
    except pytz.AmbiguousTimeError:
        local = tz.localize(naive, is_dst=True)
    return local.astimezone(pytz.UTC)


def ensure_utc(dt: datetime) -> datetime:
    """Return ``dt`` as an aware UTC datetime. Naive values are assumed to be UTC."""
    if dt.tzinfo is None:
        return pytz.UTC.localize(dt)
    return dt.astimezone(pytz.UTC)


def day_of_week(day: date) -> int:
    """Day of week with Sunday = 0 through Saturday = 6."""
    return (day.weekday() + 1) % 7
