"""Reminder Thresholds — pure day-granular matching and per-day deduplication.

Invariants:
    - Thresholds are strictly descending unique positive day counts
    - EXACT: a threshold fires only when days_until equals it on the day of the run
    - CATCH_UP: the tightest crossed threshold fires once per entity and anchor date,
      even if the run on the exact day was missed
    - Dedup key is (userId, type, entityId, calendarDay); at most one per key
    - Nothing here mutates notifications; callers append what is returned

Design Decisions:
    - The "last notified threshold" is stored on the plan/achievement record
      together with its anchor date (target/expiry date); deleting or pruning
      notifications never restarts a countdown
    - Moving the anchor date starts a fresh countdown (the stored anchor no longer matches)
    - Persisted notification payloads still count, for records written before
      the stored state existed
    - Same-day dedup applies under both policies (ADR: repeated runs are idempotent)
"""

from datetime import date, datetime
from typing import Iterable

from certtrack.core.clock import calendar_day
from certtrack.core.domain_types import NotificationType, ReminderPolicy
from certtrack.models.notification import (
    ExpiryWarningPayload, Notification, PlanReminderPayload,
)

PLAN_REMINDER_DAYS: tuple[int, ...] = (30, 14, 7, 3, 1)
EXPIRY_WARNING_DAYS: tuple[int, ...] = (90, 60, 30, 14, 7)

DedupKey = tuple[str, str, str, str]


def normalize_thresholds(values: Iterable[int]) -> tuple[int, ...]:
    """Unique positive thresholds, largest first."""
    cleaned = sorted({int(v) for v in values}, reverse=True)
    if not cleaned:
        raise ValueError("at least one threshold is required")
    if cleaned[-1] <= 0:
        raise ValueError("thresholds must be positive day counts")
    return tuple(cleaned)


def due_threshold(
    days_until: int,
    thresholds: tuple[int, ...],
    policy: ReminderPolicy,
    last_notified: int | None = None,
) -> int | None:
    """Threshold to notify for now, or None."""
    if policy == ReminderPolicy.EXACT:
        return days_until if days_until in thresholds else None

    if days_until <= 0:
        return None
    crossed = [t for t in thresholds if days_until <= t]
    if not crossed:
        return None
    current = min(crossed)
    if last_notified is not None and current >= last_notified:
        return None
    return current


def _anchor_date(payload) -> date | None:
    if isinstance(payload, PlanReminderPayload):
        return payload.target_date
    if isinstance(payload, ExpiryWarningPayload):
        return payload.expiry_date
    return None


def last_notified_threshold(
    notifications: Iterable[Notification],
    kind: NotificationType,
    entity_id: str,
    anchor: date,
) -> int | None:
    """Smallest threshold already notified for this entity's current countdown."""
    notified = [
        n.payload.threshold
        for n in notifications
        if n.type == kind
        and n.entity_id == entity_id
        and _anchor_date(n.payload) == anchor
    ]
    return min(notified) if notified else None


def recorded_threshold(
    last_threshold: int | None, last_anchor: date | None, anchor: date,
) -> int | None:
    """Threshold stored on the record, if it belongs to the current countdown."""
    if last_threshold is None or last_anchor != anchor:
        return None
    return last_threshold


def tightest(*thresholds: int | None) -> int | None:
    known = [t for t in thresholds if t is not None]
    return min(known) if known else None


def dedup_key(notification: Notification) -> DedupKey:
    return (
        notification.user_id,
        notification.type.value,
        notification.entity_id or "",
        calendar_day(notification.created_at),
    )


def already_notified_today(
    notifications: Iterable[Notification],
    user_id: str,
    kind: NotificationType,
    entity_id: str,
    now: datetime,
) -> bool:
    key = (user_id, kind.value, entity_id, calendar_day(now))
    return any(dedup_key(n) == key for n in notifications)
