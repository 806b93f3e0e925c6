"""
Canonical clock for contact decisions.

"Now" is always UTC. "Today" is the calendar date of now in
settings.QUOTA_TIMEZONE (UTC by default), so the quota day flips at
00:00:00 in that zone and nowhere else.
"""

from datetime import date, datetime, timezone, tzinfo
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from ..config import settings

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def get_clock() -> Clock:
    """FastAPI dependency. Tests override this to pin time."""
    return utcnow


def as_utc(value: datetime) -> datetime:
    """
    Normalize a stored timestamp to aware UTC.

    SQLite hands back naive datetimes; everything written by this service is
    UTC, so naive values are interpreted as UTC.
    """
    if value.tzinfo is None or value.utcoffset() is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _quota_zone(name: Optional[str] = None) -> tzinfo:
    name = name or settings.QUOTA_TIMEZONE
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def quota_day(now: datetime, tz_name: Optional[str] = None) -> date:
    """Calendar day `now` belongs to for quota purposes."""
    return as_utc(now).astimezone(_quota_zone(tz_name)).date()


def day_key(now: datetime, tz_name: Optional[str] = None) -> str:
    return quota_day(now, tz_name).isoformat()
