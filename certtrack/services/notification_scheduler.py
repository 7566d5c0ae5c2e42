"""Notification Scheduler — derives reminders and warnings from the two lifecycles.

Invariants:
    - run_scheduled() loads each collection once and writes each of notifications,
      studyPlans and achievements at most once (only when something was created)
    - The threshold a reminder fired for is stored on its plan/achievement in the
      same run, so deleting or pruning the notification does not re-arm it
    - At most one notification per (userId, type, entityId, calendar day): a second
      run on the same day with unchanged data creates nothing
    - Plan reminders only for Planning/InProgress plans; expiry warnings only for
      active achievements that carry an expiry date
    - Records whose user or certification no longer exists are skipped, not fatal
    - create_broadcast() is explicit (never scheduled): new certification -> every
      user, achievement report -> every admin
    - announce() never raises a CertTrackError: the record it reports on is
      already persisted, so a failed fan-out is logged and reported as 0

Design Decisions:
    - The policy is injected: CATCH_UP (default) fires the tightest crossed threshold
      once per countdown, EXACT keeps the day-equality rule and its gap on missed days
    - No timer: invoked by an operator trigger or an external cron-like caller
"""

import logging
from datetime import datetime

from certtrack.core.clock import days_until, utcnow
from certtrack.core.collections import CollectionSnapshot
from certtrack.core.domain_types import CollectionName, NotificationType, ReminderPolicy
from certtrack.core.errors import CertTrackError, NotFoundError, ValidationError
from certtrack.core.format_notifications import (
    format_achievement_report, format_expiry_warning,
    format_new_certification, format_plan_reminder,
)
from certtrack.core.reminder_thresholds import (
    EXPIRY_WARNING_DAYS, PLAN_REMINDER_DAYS,
    already_notified_today, due_threshold, last_notified_threshold, normalize_thresholds,
    recorded_threshold, tightest,
)
from certtrack.core.repository_protocols import AuditSink, CollectionStore
from certtrack.models.achievement import Achievement
from certtrack.models.base import new_id
from certtrack.models.certification import Certification
from certtrack.models.notification import (
    AchievementReportPayload, ExpiryWarningPayload, NewCertificationPayload,
    Notification, PlanReminderPayload,
)
from certtrack.models.study_plan import StudyPlan
from certtrack.models.user import User
from certtrack.schemas.maintenance import ScheduleResult
from certtrack.services.collection_io import Clock, CollectionService

logger = logging.getLogger(__name__)


class NotificationScheduler(CollectionService):
    """Threshold reminders on demand, plus explicit broadcasts."""

    def __init__(
        self,
        store: CollectionStore,
        policy: ReminderPolicy = ReminderPolicy.CATCH_UP,
        plan_reminder_days: tuple[int, ...] = PLAN_REMINDER_DAYS,
        expiry_warning_days: tuple[int, ...] = EXPIRY_WARNING_DAYS,
        audit: AuditSink | None = None,
        clock: Clock = utcnow,
    ):
        super().__init__(store, audit, clock)
        self.policy = policy
        self.plan_reminder_days = normalize_thresholds(plan_reminder_days)
        self.expiry_warning_days = normalize_thresholds(expiry_warning_days)

    # ─── Scheduled ───────────────────────────────────────────────

    async def run_scheduled(self, now: datetime | None = None) -> ScheduleResult:
        now = now or self.clock()
        plans = await self._load(CollectionName.STUDY_PLANS, StudyPlan)
        achievements = await self._load(CollectionName.ACHIEVEMENTS, Achievement)
        certifications = await self._load(CollectionName.CERTIFICATIONS, Certification)
        users = await self._load(CollectionName.USERS, User)
        notifications = await self._load(CollectionName.NOTIFICATIONS, Notification)

        reminders = self._plan_reminders(plans, certifications, users, notifications, now)
        warnings = self._expiry_warnings(achievements, certifications, users, notifications, now)

        total = reminders + warnings
        if total:
            await self._persist(
                notifications,
                f"Scheduled notifications: {reminders} plan reminders, {warnings} expiry warnings",
            )
        if reminders:
            await self._persist(plans, f"Record reminder thresholds for {reminders} study plans")
        if warnings:
            await self._persist(achievements, f"Record warning thresholds for {warnings} achievements")
        logger.info(
            f"Scheduled run created {total} notifications",
            extra={"count": total},
        )
        return ScheduleResult(plan_reminders=reminders, expiry_warnings=warnings, total=total)

    def _due(
        self, kind: NotificationType, record: StudyPlan | Achievement, anchor,
        thresholds: tuple[int, ...], notifications: CollectionSnapshot[Notification], now: datetime,
    ) -> tuple[int, int] | None:
        remaining = days_until(anchor, now)
        last = None
        if self.policy == ReminderPolicy.CATCH_UP:
            last = tightest(
                recorded_threshold(record.last_reminder_threshold, record.last_reminder_anchor, anchor),
                last_notified_threshold(notifications, kind, record.id, anchor),
            )
        threshold = due_threshold(remaining, thresholds, self.policy, last)
        if threshold is None:
            return None
        return remaining, threshold

    def _plan_reminders(self, plans, certifications, users, notifications, now) -> int:
        created = 0
        for plan in plans:
            if not plan.is_active:
                continue
            due = self._due(
                NotificationType.PLAN_REMINDER, plan, plan.target_date,
                self.plan_reminder_days, notifications, now,
            )
            if due is None:
                continue
            if already_notified_today(
                notifications, plan.user_id, NotificationType.PLAN_REMINDER, plan.id, now,
            ):
                continue
            certification = certifications.get(plan.certification_id)
            if certification is None or users.get(plan.user_id) is None:
                logger.warning(
                    f"Skipping reminder for plan {plan.id}: user or certification missing",
                    extra={"resource_id": plan.id},
                )
                continue
            remaining, threshold = due
            title, message = format_plan_reminder(certification.name, remaining)
            notifications.put(Notification(
                id=new_id(),
                user_id=plan.user_id,
                type=NotificationType.PLAN_REMINDER,
                title=title,
                message=message,
                payload=PlanReminderPayload(
                    plan_id=plan.id,
                    certification_id=plan.certification_id,
                    target_date=plan.target_date,
                    days_until_target=remaining,
                    threshold=threshold,
                ),
                created_at=now,
            ))
            plans.put(plan.model_copy(update={
                "last_reminder_threshold": threshold,
                "last_reminder_anchor": plan.target_date,
            }))
            created += 1
        return created

    def _expiry_warnings(self, achievements, certifications, users, notifications, now) -> int:
        created = 0
        for achievement in achievements:
            if not achievement.is_active or achievement.expiry_date is None:
                continue
            due = self._due(
                NotificationType.EXPIRY_WARNING, achievement, achievement.expiry_date,
                self.expiry_warning_days, notifications, now,
            )
            if due is None:
                continue
            if already_notified_today(
                notifications, achievement.user_id,
                NotificationType.EXPIRY_WARNING, achievement.id, now,
            ):
                continue
            certification = certifications.get(achievement.certification_id)
            if certification is None or users.get(achievement.user_id) is None:
                logger.warning(
                    f"Skipping expiry warning for achievement {achievement.id}: user or certification missing",
                    extra={"resource_id": achievement.id},
                )
                continue
            remaining, threshold = due
            title, message = format_expiry_warning(certification.name, remaining)
            notifications.put(Notification(
                id=new_id(),
                user_id=achievement.user_id,
                type=NotificationType.EXPIRY_WARNING,
                title=title,
                message=message,
                payload=ExpiryWarningPayload(
                    achievement_id=achievement.id,
                    certification_id=achievement.certification_id,
                    expiry_date=achievement.expiry_date,
                    days_until_expiry=remaining,
                    threshold=threshold,
                ),
                created_at=now,
            ))
            achievements.put(achievement.model_copy(update={
                "last_reminder_threshold": threshold,
                "last_reminder_anchor": achievement.expiry_date,
            }))
            created += 1
        return created

    # ─── Broadcasts ──────────────────────────────────────────────

    async def create_broadcast(self, kind: NotificationType, entity_id: str) -> int:
        """Fan out one notification per recipient. Returns how many were created."""
        now = self.clock()
        users = await self._load(CollectionName.USERS, User)
        certifications = await self._load(CollectionName.CERTIFICATIONS, Certification)

        if kind == NotificationType.NEW_CERTIFICATION:
            certification = certifications.get(entity_id)
            if certification is None:
                raise NotFoundError("Certification", entity_id)
            recipients = list(users)
            title, message = format_new_certification(certification.name)
            payload = NewCertificationPayload(
                certification_id=certification.id,
                certification_name=certification.name,
                category=certification.category,
            )
        elif kind == NotificationType.ACHIEVEMENT_REPORT:
            achievements = await self._load(CollectionName.ACHIEVEMENTS, Achievement)
            achievement = achievements.get(entity_id)
            if achievement is None:
                raise NotFoundError("Achievement", entity_id)
            achiever = users.get(achievement.user_id)
            certification = certifications.get(achievement.certification_id)
            if achiever is None:
                raise NotFoundError("User", achievement.user_id)
            if certification is None:
                raise NotFoundError("Certification", achievement.certification_id)
            recipients = [u for u in users if u.is_admin]
            title, message = format_achievement_report(achiever.name, certification.name)
            payload = AchievementReportPayload(
                achievement_id=achievement.id,
                user_id=achiever.id,
                user_name=achiever.name,
                certification_id=certification.id,
                certification_name=certification.name,
                achieved_date=achievement.achieved_date,
            )
        else:
            raise ValidationError(f"{kind.value} is not a broadcast notification", "type")

        notifications = await self._load(CollectionName.NOTIFICATIONS, Notification)
        created = 0
        for user in recipients:
            if already_notified_today(notifications, user.id, kind, entity_id, now):
                continue
            notifications.put(Notification(
                id=new_id(),
                user_id=user.id,
                type=kind,
                title=title,
                message=message,
                payload=payload,
                created_at=now,
            ))
            created += 1

        if created:
            await self._persist(notifications, f"Broadcast {kind.value} for {entity_id} to {created} users")
        logger.info(f"Broadcast {kind.value} to {created} users", extra={"count": created, "resource_id": entity_id})
        return created

    async def announce(self, kind: NotificationType, entity_id: str) -> int:
        """create_broadcast() for a record that is already persisted.

        A failed fan-out must not fail the write that triggered it; it is logged
        and counted as 0, and create_broadcast() can be re-triggered later.
        """
        try:
            return await self.create_broadcast(kind, entity_id)
        except CertTrackError as e:
            logger.error(
                f"Broadcast {kind.value} for {entity_id} failed: {e.message}",
                exc_info=True,
                extra={"resource_id": entity_id, "error_code": e.code},
            )
            return 0
