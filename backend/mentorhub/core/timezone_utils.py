"""
Timezone utilities for the MentorHub availability service.

Provides schedule-based timezone support. Every schedule carries an IANA
timezone name; wall-clock times in time blocks are interpreted in that zone
while booking-window comparisons are done on absolute instants.
"""

from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple

import pytz
from pytz.tzinfo import BaseTzInfo


def is_valid_timezone(tz_name: str) -> bool:
    """Check whether a name exists in the tz database."""
    return tz_name in pytz.all_timezones_set


def get_timezone(tz_name: str) -> BaseTzInfo:
    """
    Get a timezone object by IANA name.

    Args:
        tz_name: IANA timezone identifier, e.g. "America/New_York"

    Returns:
        pytz timezone object

    Raises:
        pytz.UnknownTimeZoneError: If the name is not in the tz database
    """
    return pytz.timezone(tz_name)


def now_utc() -> datetime:
    """Current instant as an aware UTC datetime."""
    return datetime.now(pytz.UTC)


def ensure_aware(dt: datetime) -> datetime:
    """Assume UTC for naive datetimes."""
    if dt.tzinfo is None:
        return pytz.UTC.localize(dt)
    return dt


def to_timezone(dt: datetime, tz_name: str) -> datetime:
    """
    Convert a datetime to the given timezone.

    Args:
        dt: Datetime to convert (naive values are treated as UTC)
        tz_name: Target IANA timezone

    Returns:
        Datetime in the target timezone
    """
    return ensure_aware(dt).astimezone(get_timezone(tz_name))


def today_in_timezone(tz_name: str, now: Optional[datetime] = None) -> date:
    """
    Get 'today' in a schedule's timezone.

    Args:
        tz_name: IANA timezone of the schedule
        now: Optional reference instant (defaults to the current time)

    Returns:
        Today's date in that timezone
    """
    reference = now if now is not None else now_utc()
    return to_timezone(reference, tz_name).date()


def localize_wall_clock(day: date, minutes: int, tz_name: str) -> datetime:
    """
    Turn a wall-clock time on a date into an aware datetime.

    ``minutes`` counts from local midnight; 1440 means midnight at the end
    of ``day``. Ambiguous times (DST fall-back) resolve to the standard-time
    occurrence, and non-existent times (DST spring-forward) are shifted
    forward past the gap.

    Args:
        day: Local calendar date
        minutes: Minutes since local midnight, 0..1440
        tz_name: IANA timezone of the schedule

    Returns:
        Aware datetime in the schedule's timezone
    """
    tz = get_timezone(tz_name)
    naive = datetime.combine(day, time(0, 0)) + timedelta(minutes=minutes)
    try:
        return tz.localize(naive, is_dst=None)
    except pytz.AmbiguousTimeError:
        return tz.localize(naive, is_dst=False)
    except pytz.NonExistentTimeError:
        # Standard-time offset lands after the gap once normalized
        return tz.normalize(tz.localize(naive, is_dst=False))


def local_date_and_minutes(dt: datetime, tz_name: str) -> Tuple[date, int]:
    """
    Split an instant into its local date and minutes since local midnight.

    Args:
        dt: Instant to split
        tz_name: IANA timezone of the schedule

    Returns:
        Tuple of (local date, minutes since midnight)
    """
    local = to_timezone(dt, tz_name)
    return local.date(), local.hour * 60 + local.minute


def add_calendar_days(dt: datetime, days: int, tz_name: str) -> datetime:
    """
    Add calendar days in a timezone, keeping the local wall-clock time.

    Unlike adding a fixed 24h timedelta this stays on the same local time of
    day across DST transitions.
    """
    local = to_timezone(dt, tz_name)
    target_day = local.date() + timedelta(days=days)
    minutes = local.hour * 60 + local.minute
    shifted = localize_wall_clock(target_day, minutes, tz_name)
    return shifted.replace(second=local.second, microsecond=local.microsecond)