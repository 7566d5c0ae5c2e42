"""Calendar arithmetic — ceiling day countdowns in UTC."""

from datetime import date, datetime, timedelta, timezone

from certtrack.core.clock import as_utc, calendar_day, days_until, has_passed


def test_days_until_is_ceiling():
    now = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
    assert days_until(date(2024, 6, 8), now) == 7   # 6.5 days -> 7
    assert days_until(date(2024, 6, 2), now) == 1
    assert days_until(date(2024, 6, 1), now) == 0
    assert days_until(date(2024, 5, 31), now) == -1


def test_days_until_at_midnight_is_exact():
    now = datetime(2024, 6, 1, tzinfo=timezone.utc)
    assert days_until(date(2024, 6, 8), now) == 7


def test_naive_datetimes_are_utc():
    naive = datetime(2024, 6, 1, 12, 0)
    assert as_utc(naive).tzinfo == timezone.utc
    shifted = datetime(2024, 6, 1, 23, 30, tzinfo=timezone(timedelta(hours=-3)))
    assert calendar_day(shifted) == "2024-06-02"


def test_has_passed():
    now = datetime(2024, 6, 1, 0, 0, 1, tzinfo=timezone.utc)
    assert has_passed(date(2024, 6, 1), now)
    assert not has_passed(date(2024, 6, 2), now)
