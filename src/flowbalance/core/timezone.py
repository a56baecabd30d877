"""Time helpers.

All timestamps are stored as naive UTC datetimes. Conversion to the
user-facing timezone only happens at the edges.
"""

from datetime import date, datetime, time, timedelta
from typing import Optional, Union

import pytz
from dateutil import parser as date_parser

from flowbalance.config.settings import get_settings

UTC = pytz.utc


def now_utc() -> datetime:
    """Return the current time as a naive UTC datetime."""
    return datetime.now(UTC).replace(tzinfo=None)


def to_utc_naive(dt: datetime) -> datetime:
    """Normalize a datetime to naive UTC. Naive input is assumed to be UTC."""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(UTC).replace(tzinfo=None)


def parse_datetime_utc(value: Union[str, datetime, date]) -> datetime:
    """
    Parse a datetime string (or date) and return it as naive UTC.

    Strings without offset are treated as UTC.
    """
    if isinstance(value, datetime):
        return to_utc_naive(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    return to_utc_naive(date_parser.parse(value))


def start_of_day(dt: datetime) -> datetime:
    return datetime.combine(dt.date(), time.min)


def end_of_day(dt: datetime) -> datetime:
    return datetime.combine(dt.date(), time(23, 59, 59, 999000))


def future_horizon(now: datetime, days_ahead: int) -> datetime:
    """
    Return the last instant that generated future data may cover.

    0 days means "through the end of today"; N days means through the end
    of tomorrow plus N-1 further days.
    """
    if days_ahead <= 0:
        return end_of_day(now)
    return end_of_day(now + timedelta(days=days_ahead))


def hours_between(earlier: datetime, later: datetime) -> float:
    """Return the number of hours from earlier to later."""
    return (later - earlier).total_seconds() / 3600


def get_display_tz(name: Optional[str] = None) -> pytz.BaseTzInfo:
    return pytz.timezone(name or get_settings().display_timezone)


def to_display_tz(dt: datetime, tz_name: Optional[str] = None) -> datetime:
    """Convert a naive-UTC datetime to the configured display timezone."""
    if dt.tzinfo is None:
        dt = UTC.localize(dt)
    return dt.astimezone(get_display_tz(tz_name))
