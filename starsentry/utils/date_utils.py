"""Date and time utilities for StarSentry."""

import datetime
import math
from typing import Optional, Union

from dateutil.parser import parse as parse_date

SECONDS_PER_DAY = 86400


def make_utc_datetime(dt: Optional[datetime.datetime]) -> Optional[datetime.datetime]:
    """Convert a datetime to timezone-aware UTC (naive values are taken as UTC)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=datetime.timezone.utc)
    return dt.astimezone(datetime.timezone.utc)


def parse_timestamp(value: Union[str, datetime.datetime, None]) -> Optional[datetime.datetime]:
    """Parse an API timestamp into an aware UTC datetime, or None if it can't be parsed."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime.datetime):
        return make_utc_datetime(value)
    try:
        return make_utc_datetime(parse_date(value))
    except (TypeError, ValueError, OverflowError):
        return None


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def utc_date_str(dt: datetime.datetime) -> str:
    """UTC calendar date as YYYY-MM-DD."""
    return make_utc_datetime(dt).date().isoformat()


def minute_bucket(dt: datetime.datetime) -> str:
    """UTC timestamp truncated to the minute, e.g. 2024-05-01T13:07."""
    return make_utc_datetime(dt).strftime("%Y-%m-%dT%H:%M")


def age_in_days(since: datetime.datetime, now: datetime.datetime) -> float:
    return (make_utc_datetime(now) - make_utc_datetime(since)).total_seconds() / SECONDS_PER_DAY


def format_timestamp(dt: Optional[datetime.datetime]) -> Optional[str]:
    """ISO-8601 with a trailing Z, matching the GitHub API format."""
    if dt is None:
        return None
    return make_utc_datetime(dt).strftime("%Y-%m-%dT%H:%M:%SZ")


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (Python's round() is banker's)."""
    return int(math.floor(value + 0.5))
