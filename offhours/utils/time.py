"""
Civil time utilities.

Every window check and day key is resolved in one fixed timezone, independent of
the server's local time.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable
from zoneinfo import ZoneInfo

Clock = Callable[[], datetime]


@dataclass(frozen=True)
class CivilTime:
    """Wall-clock reading of an instant in a given timezone."""
    year: int
    month: int
    day: int
    hour: int
    minute: int
    second: int


def to_zone(dt: datetime, tz: str) -> datetime:
    """
    Convert a datetime to the given timezone.

    Args:
        dt: Datetime to convert (naive datetimes are assumed to already be local)
        tz: IANA timezone name

    Returns:
        Timezone-aware datetime in tz
    """
    zone = ZoneInfo(tz)
    if dt.tzinfo is None:
        return dt.replace(tzinfo=zone)
    return dt.astimezone(zone)


def civil_time(instant: datetime, tz: str) -> CivilTime:
    """Resolve an instant into calendar and clock fields in tz."""
    local = to_zone(instant, tz)
    return CivilTime(
        year=local.year,
        month=local.month,
        day=local.day,
        hour=local.hour,
        minute=local.minute,
        second=local.second,
    )


def day_key(instant: datetime, tz: str) -> str:
    """Civil date of the instant in tz, formatted YYYYMMDD."""
    parts = civil_time(instant, tz)
    return f"{parts.year:04d}{parts.month:02d}{parts.day:02d}"


def local_time_on_day(instant: datetime, tz: str, hour: int, minute: int) -> datetime:
    """The given wall-clock time on the same civil day as instant."""
    local = to_zone(instant, tz)
    return local.replace(hour=hour, minute=minute, second=0, microsecond=0)


def next_local_occurrence(instant: datetime, tz: str, hour: int, minute: int) -> datetime:
    """
    Next time the wall clock in tz reads hour:minute, strictly after instant.

    Args:
        instant: Reference time
        tz: IANA timezone name
        hour: Target hour (0-23)
        minute: Target minute (0-59)

    Returns:
        Timezone-aware datetime in tz
    """
    target = local_time_on_day(instant, tz, hour, minute)
    if target <= to_zone(instant, tz):
        # zoneinfo arithmetic is wall-clock, so this stays at hour:minute across DST
        target += timedelta(days=1)
    return target


def make_clock(tz: str) -> Clock:
    """Return a callable giving the current time in tz."""
    zone = ZoneInfo(tz)

    def _now() -> datetime:
        return datetime.now(zone)

    return _now
