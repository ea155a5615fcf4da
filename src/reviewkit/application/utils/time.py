"""Datetime helpers. Every timestamp handled by reviewkit is aware UTC."""

import math
from datetime import date, datetime, timedelta, timezone

from reviewkit.domain.constants import SECONDS_PER_DAY


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """
    Normalize a datetime to UTC.

    Naive datetimes are assumed to already be in UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def days_between(start: datetime, end: datetime) -> float:
    """Fractional days from start to end (negative if end is earlier)."""
    return (end - start).total_seconds() / SECONDS_PER_DAY


def whole_days_between(start: datetime, end: datetime) -> int:
    return math.floor(days_between(start, end))


def day_range(first: date, count: int) -> list[date]:
    return [first + timedelta(days=offset) for offset in range(count)]
