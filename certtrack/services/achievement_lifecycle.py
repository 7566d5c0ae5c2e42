"""Achievement Lifecycle — record, (de)activate, expire and query achievements.

Invariants:
    - At most one ACTIVE achievement per (user, certification): checked on add
      AND on reactivate (siblings only, the record itself excluded)
    - expiryDate, when present, is never before achievedDate
    - process_expired() flips every active achievement whose expiry date has
      passed; a second run with no newly expired records mutates nothing
    - process_expired() writes at most once, and only when something changed

Design Decisions:
    - Recording an achievement reports it to admins through the injected
      NotificationScheduler (announce() after the achievement is persisted); a
      failed report is logged and never fails add()
"""

import logging
from datetime import datetime, timedelta

from certtrack.core.clock import utcnow
from certtrack.core.domain_types import CollectionName, NotificationType
from certtrack.core.enforce_achievement import (
    check_expiry_order, check_no_active_sibling, find_expired,
)
from certtrack.core.errors import NotFoundError
from certtrack.core.repository_protocols import AuditSink, CollectionStore
from certtrack.models.achievement import Achievement
from certtrack.models.base import new_id
from certtrack.models.certification import Certification
from certtrack.schemas.achievement import AchievementCreate, AchievementUpdate
from certtrack.schemas.maintenance import ExpireResult
from certtrack.services.collection_io import Clock, CollectionService
from certtrack.services.notification_scheduler import NotificationScheduler

logger = logging.getLogger(__name__)

RESOURCE = "achievement"


class AchievementLifecycle(CollectionService):
    """Activation state machine over the achievements collection."""

    def __init__(
        self,
        store: CollectionStore,
        notifier: NotificationScheduler | None = None,
        audit: AuditSink | None = None,
        clock: Clock = utcnow,
    ):
        super().__init__(store, audit, clock)
        self.notifier = notifier

    async def add(
        self, user_id: str, payload: AchievementCreate, actor: str | None = None,
    ) -> Achievement:
        check_expiry_order(payload.achieved_date, payload.expiry_date)
        certifications = await self._load(CollectionName.CERTIFICATIONS, Certification)
        if certifications.get(payload.certification_id) is None:
            raise NotFoundError("Certification", payload.certification_id)

        achievements = await self._load(CollectionName.ACHIEVEMENTS, Achievement)
        check_no_active_sibling(achievements, user_id, payload.certification_id)

        now = self.clock()
        achievement = achievements.put(Achievement(
            id=new_id(),
            user_id=user_id,
            certification_id=payload.certification_id,
            achieved_date=payload.achieved_date,
            certification_number=payload.certification_number,
            expiry_date=payload.expiry_date,
            created_at=now,
            updated_at=now,
        ))
        await self._persist(achievements, f"Record achievement {achievement.id}")
        self._audit(actor or user_id, "create", RESOURCE, achievement.id, after=achievement)
        logger.info("Achievement recorded", extra={"user_id": user_id, "resource_id": achievement.id})

        if self.notifier is not None:
            await self.notifier.announce(NotificationType.ACHIEVEMENT_REPORT, achievement.id)
        return achievement

    async def get(self, achievement_id: str) -> Achievement:
        achievements = await self._load(CollectionName.ACHIEVEMENTS, Achievement)
        achievement = achievements.get(achievement_id)
        if achievement is None:
            raise NotFoundError("Achievement", achievement_id)
        return achievement

    async def update(
        self, achievement_id: str, payload: AchievementUpdate, actor: str | None = None,
    ) -> Achievement:
        achievements = await self._load(CollectionName.ACHIEVEMENTS, Achievement)
        before = achievements.get(achievement_id)
        if before is None:
            raise NotFoundError("Achievement", achievement_id)
        changes = payload.model_dump(exclude_unset=True)
        check_expiry_order(
            changes.get("achieved_date") or before.achieved_date,
            changes["expiry_date"] if "expiry_date" in changes else before.expiry_date,
        )
        if changes.get("achieved_date") is None:
            changes.pop("achieved_date", None)

        achievement = achievements.put(before.model_copy(update={**changes, "updated_at": self.clock()}))
        await self._persist(achievements, f"Update achievement {achievement_id}")
        self._audit(actor, "update", RESOURCE, achievement_id, before, achievement)
        return achievement

    async def delete(self, achievement_id: str, actor: str | None = None) -> None:
        achievements = await self._load(CollectionName.ACHIEVEMENTS, Achievement)
        before = achievements.remove(achievement_id)
        if before is None:
            raise NotFoundError("Achievement", achievement_id)
        await self._persist(achievements, f"Delete achievement {achievement_id}")
        self._audit(actor, "delete", RESOURCE, achievement_id, before=before)

    async def deactivate(self, achievement_id: str, actor: str | None = None) -> Achievement:
        return await self._set_active(achievement_id, False, actor)

    async def reactivate(self, achievement_id: str, actor: str | None = None) -> Achievement:
        return await self._set_active(achievement_id, True, actor)

    async def _set_active(self, achievement_id: str, active: bool, actor: str | None) -> Achievement:
        achievements = await self._load(CollectionName.ACHIEVEMENTS, Achievement)
        before = achievements.get(achievement_id)
        if before is None:
            raise NotFoundError("Achievement", achievement_id)
        if before.is_active == active:
            return before
        if active:
            check_no_active_sibling(
                achievements, before.user_id, before.certification_id, exclude_id=achievement_id,
            )

        achievement = achievements.put(before.model_copy(update={
            "is_active": active, "updated_at": self.clock(),
        }))
        verb = "reactivate" if active else "deactivate"
        await self._persist(achievements, f"{verb.capitalize()} achievement {achievement_id}")
        self._audit(actor, verb, RESOURCE, achievement_id, before, achievement)
        return achievement

    async def process_expired(self, now: datetime | None = None) -> ExpireResult:
        """Deactivate every active achievement whose expiry date has passed."""
        now = now or self.clock()
        achievements = await self._load(CollectionName.ACHIEVEMENTS, Achievement)
        expired = find_expired(achievements, now)
        for achievement_id in expired:
            achievement = achievements.get(achievement_id)
            achievements.put(achievement.model_copy(update={"is_active": False, "updated_at": now}))
        if expired:
            await self._persist(achievements, f"Deactivate {len(expired)} expired achievements")
        logger.info(
            f"Expiry processing deactivated {len(expired)} achievements",
            extra={"count": len(expired)},
        )
        return ExpireResult(count=len(expired), achievement_ids=expired)

    # ─── Queries ─────────────────────────────────────────────────

    async def list_for_user(self, user_id: str, active_only: bool = False) -> list[Achievement]:
        achievements = await self._load(CollectionName.ACHIEVEMENTS, Achievement)
        return sorted(
            (a for a in achievements if a.user_id == user_id and (a.is_active or not active_only)),
            key=lambda a: a.achieved_date, reverse=True,
        )

    async def list_all(self, active_only: bool = False) -> list[Achievement]:
        achievements = await self._load(CollectionName.ACHIEVEMENTS, Achievement)
        return sorted(
            (a for a in achievements if a.is_active or not active_only),
            key=lambda a: a.achieved_date, reverse=True,
        )

    async def expiring(self, days_ahead: int = 90) -> list[Achievement]:
        """Active achievements expiring between today and days_ahead, soonest first."""
        now = self.clock()
        today = now.date()
        horizon = (now + timedelta(days=days_ahead)).date()
        achievements = await self._load(CollectionName.ACHIEVEMENTS, Achievement)
        return sorted(
            (
                a for a in achievements
                if a.is_active and a.expiry_date is not None and today <= a.expiry_date <= horizon
            ),
            key=lambda a: a.expiry_date,
        )

    async def renewal_history(self, user_id: str, certification_id: str) -> list[Achievement]:
        """Every achievement of one certification by one user, oldest first."""
        achievements = await self._load(CollectionName.ACHIEVEMENTS, Achievement)
        return sorted(
            (a for a in achievements if a.user_id == user_id and a.certification_id == certification_id),
            key=lambda a: a.achieved_date,
        )
