"""Calendar arithmetic — day-granular countdowns and calendar-day keys, all in UTC.

Invariants:
    - A plain date is interpreted as 00:00 UTC of that day
    - days_until() is the ceiling of the remaining time in days (negative once passed)
    - calendar_day() is the YYYY-MM-DD string used as the dedup day key
"""

import math
from datetime import date, datetime, time, timezone

_SECONDS_PER_DAY = 86_400


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(moment: datetime) -> datetime:
    """Naive datetimes are taken to be UTC already."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def days_until(day: date, now: datetime) -> int:
    delta = start_of_day(day) - as_utc(now)
    return math.ceil(delta.total_seconds() / _SECONDS_PER_DAY)


def has_passed(day: date, now: datetime) -> bool:
    return start_of_day(day) < as_utc(now)


def calendar_day(moment: datetime) -> str:
    return as_utc(moment).date().isoformat()
