"""
Date/time helpers for the configured local timezone
"""
from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

from taskdesk.config import get_settings


def local_tz() -> ZoneInfo:
    return ZoneInfo(get_settings().TIMEZONE)


def as_utc(value: datetime) -> datetime:
    """
    Normalize a timestamp to aware UTC.

    Naive values are treated as UTC (SQLite returns TIMESTAMP columns without tzinfo).
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def local_today(now: datetime, tz: ZoneInfo) -> date:
    """Calendar date of `now` in the given zone"""
    return as_utc(now).astimezone(tz).date()


def local_midnight_utc(day: date, tz: ZoneInfo) -> datetime:
    """Start of `day` in the given zone, expressed in UTC"""
    return datetime.combine(day, time.min, tzinfo=tz).astimezone(timezone.utc)


def project_time_onto_date(value: datetime, day: date, tz: ZoneInfo) -> datetime:
    """
    Keep the local clock time (hour:minute) of `value`, move it to `day`.
    Seconds are dropped. Result is aware UTC.
    """
    local = as_utc(value).astimezone(tz)
    moved = datetime.combine(day, time(local.hour, local.minute), tzinfo=tz)
    return moved.astimezone(timezone.utc)
