"""Achievement Enforcement — uniqueness, expiry ordering and expiry detection."""

from datetime import date, datetime, timezone

import pytest

from certtrack.core.enforce_achievement import (
    check_expiry_order, check_no_active_sibling, find_expired, is_expired,
)
from certtrack.core.errors import DuplicateActiveRecordError, ValidationError
from certtrack.models.achievement import Achievement

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def _achievement(aid="a1", expiry=None, active=True, user_id="u1", cert_id="c1"):
    return Achievement(
        id=aid, user_id=user_id, certification_id=cert_id,
        achieved_date=date(2021, 6, 1), expiry_date=expiry, is_active=active,
        created_at=NOW, updated_at=NOW,
    )


def test_expiry_before_achieved_rejected():
    with pytest.raises(ValidationError) as exc:
        check_expiry_order(date(2024, 1, 2), date(2024, 1, 1))
    assert exc.value.field == "expiryDate"


def test_missing_expiry_is_fine():
    check_expiry_order(date(2024, 1, 2), None)


def test_active_sibling_blocks():
    with pytest.raises(DuplicateActiveRecordError):
        check_no_active_sibling([_achievement()], "u1", "c1")


def test_inactive_sibling_and_self_do_not_block():
    check_no_active_sibling([_achievement(active=False)], "u1", "c1")
    check_no_active_sibling([_achievement()], "u1", "c1", exclude_id="a1")


def test_expired_yesterday():
    assert is_expired(_achievement(expiry=date(2024, 5, 31)), NOW)


def test_expiring_today_counts_as_passed_after_midnight():
    # 00:00 UTC of the expiry day lies before 12:00 UTC
    assert is_expired(_achievement(expiry=date(2024, 6, 1)), NOW)


def test_future_or_missing_expiry_not_expired():
    assert not is_expired(_achievement(expiry=date(2024, 6, 2)), NOW)
    assert not is_expired(_achievement(expiry=None), NOW)


def test_find_expired_skips_inactive():
    records = [
        _achievement("a1", expiry=date(2024, 1, 1)),
        _achievement("a2", expiry=date(2024, 1, 1), active=False),
        _achievement("a3", expiry=date(2025, 1, 1)),
    ]
    assert find_expired(records, NOW) == ["a1"]
