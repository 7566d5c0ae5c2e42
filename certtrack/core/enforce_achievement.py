"""Achievement Enforcement — pure activation rules and expiry detection.

Invariants:
    - At most one ACTIVE achievement per (user, certification): checked on add and reactivate
    - find_expired is PURE: returns the ids to deactivate, does NOT mutate records
    - An achievement is expired once 00:00 UTC of its expiry date lies before now
    - Achievements without an expiry date never expire

Design Decisions:
    - reactivate re-checks uniqueness against siblings, excluding the record itself,
      so independent reactivations cannot leave two active records
"""

from datetime import date, datetime
from typing import Iterable

from certtrack.core.clock import has_passed
from certtrack.core.errors import DuplicateActiveRecordError, ValidationError
from certtrack.models.achievement import Achievement


def check_expiry_order(achieved_date: date, expiry_date: date | None) -> None:
    if expiry_date is not None and expiry_date < achieved_date:
        raise ValidationError("expiryDate must not be before achievedDate", "expiryDate")


def check_no_active_sibling(
    achievements: Iterable[Achievement],
    user_id: str,
    certification_id: str,
    exclude_id: str | None = None,
) -> None:
    for a in achievements:
        if a.id == exclude_id:
            continue
        if a.user_id == user_id and a.certification_id == certification_id and a.is_active:
            raise DuplicateActiveRecordError("achievement", user_id, certification_id)


def is_expired(achievement: Achievement, now: datetime) -> bool:
    return achievement.expiry_date is not None and has_passed(achievement.expiry_date, now)


def find_expired(achievements: Iterable[Achievement], now: datetime) -> list[str]:
    """Ids of active achievements whose expiry date has passed."""
    return [a.id for a in achievements if a.is_active and is_expired(a, now)]
