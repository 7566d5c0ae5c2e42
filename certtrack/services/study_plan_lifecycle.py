"""Study Plan Lifecycle — create, progress, update and query study plans.

Invariants:
    - At most one Planning/InProgress plan per (user, certification): checked on
      create and whenever an explicit status assignment reopens a plan
    - Status follows progress (see core.enforce_plan_progress.next_status);
      Cancelled is reachable only through update(status=...)
    - Completed/Cancelled plans refuse set_progress (TerminalPlanError)
    - Each operation loads each collection once and writes it once

Design Decisions:
    - Pure rules live in core/; this class only loads, applies and persists
    - Certification existence is checked at creation only; a later catalog delete
      is refused while plans reference it
"""

import logging
from datetime import timedelta

from certtrack.core.clock import days_until
from certtrack.core.domain_types import CollectionName, PlanStatus
from certtrack.core.enforce_plan_progress import (
    apply_progress, check_date_order, check_no_active_plan, check_progress_range,
)
from certtrack.core.errors import NotFoundError
from certtrack.models.base import new_id
from certtrack.models.certification import Certification
from certtrack.models.study_plan import StudyPlan
from certtrack.schemas.study_plan import StudyPlanCreate, StudyPlanUpdate
from certtrack.services.collection_io import CollectionService

logger = logging.getLogger(__name__)

RESOURCE = "studyPlan"


class StudyPlanLifecycle(CollectionService):
    """Study plan state machine over the studyPlans collection."""

    async def create(
        self, user_id: str, payload: StudyPlanCreate, actor: str | None = None,
    ) -> StudyPlan:
        check_date_order(payload.start_date, payload.target_date)
        certifications = await self._load(CollectionName.CERTIFICATIONS, Certification)
        if certifications.get(payload.certification_id) is None:
            raise NotFoundError("Certification", payload.certification_id)

        plans = await self._load(CollectionName.STUDY_PLANS, StudyPlan)
        check_no_active_plan(plans, user_id, payload.certification_id)

        now = self.clock()
        plan = plans.put(StudyPlan(
            id=new_id(),
            user_id=user_id,
            certification_id=payload.certification_id,
            start_date=payload.start_date,
            target_date=payload.target_date,
            created_at=now,
            updated_at=now,
        ))
        await self._persist(plans, f"Create study plan {plan.id}")
        self._audit(actor or user_id, "create", RESOURCE, plan.id, after=plan)
        logger.info("Study plan created", extra={"user_id": user_id, "resource_id": plan.id})
        return plan

    async def get(self, plan_id: str) -> StudyPlan:
        plans = await self._load(CollectionName.STUDY_PLANS, StudyPlan)
        plan = plans.get(plan_id)
        if plan is None:
            raise NotFoundError("Study plan", plan_id)
        return plan

    async def set_progress(
        self, plan_id: str, progress: int, actor: str | None = None,
    ) -> StudyPlan:
        plans = await self._load(CollectionName.STUDY_PLANS, StudyPlan)
        before = plans.get(plan_id)
        if before is None:
            raise NotFoundError("Study plan", plan_id)

        progress, status = apply_progress(before, progress)
        plan = plans.put(before.model_copy(update={
            "progress": progress,
            "status": status,
            "updated_at": self.clock(),
        }))
        await self._persist(plans, f"Set progress of study plan {plan_id} to {progress}")
        self._audit(actor, "update_progress", RESOURCE, plan_id, before, plan)
        if status != before.status:
            logger.info(
                f"Study plan {plan_id}: {before.status.value} -> {status.value}",
                extra={"resource_id": plan_id},
            )
        return plan

    async def update(
        self, plan_id: str, payload: StudyPlanUpdate, actor: str | None = None,
    ) -> StudyPlan:
        plans = await self._load(CollectionName.STUDY_PLANS, StudyPlan)
        before = plans.get(plan_id)
        if before is None:
            raise NotFoundError("Study plan", plan_id)

        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        start = changes.get("start_date", before.start_date)
        target = changes.get("target_date", before.target_date)
        check_date_order(start, target)

        status = changes.get("status")
        progress = changes.get("progress")
        if status is not None:
            # explicit assignment; reopening must not create a second active plan
            if progress is not None:
                check_progress_range(progress)
            if status in (PlanStatus.PLANNING, PlanStatus.IN_PROGRESS) and not before.is_active:
                check_no_active_plan(
                    (p for p in plans if p.id != plan_id),
                    before.user_id, before.certification_id,
                )
        elif progress is not None:
            changes["progress"], changes["status"] = apply_progress(before, progress)

        plan = plans.put(before.model_copy(update={**changes, "updated_at": self.clock()}))
        await self._persist(plans, f"Update study plan {plan_id}")
        self._audit(actor, "update", RESOURCE, plan_id, before, plan)
        return plan

    async def delete(self, plan_id: str, actor: str | None = None) -> None:
        plans = await self._load(CollectionName.STUDY_PLANS, StudyPlan)
        before = plans.remove(plan_id)
        if before is None:
            raise NotFoundError("Study plan", plan_id)
        await self._persist(plans, f"Delete study plan {plan_id}")
        self._audit(actor, "delete", RESOURCE, plan_id, before=before)

    # ─── Queries ─────────────────────────────────────────────────

    async def list_for_user(self, user_id: str) -> list[StudyPlan]:
        plans = await self._load(CollectionName.STUDY_PLANS, StudyPlan)
        return sorted(
            (p for p in plans if p.user_id == user_id),
            key=lambda p: p.created_at, reverse=True,
        )

    async def list_all(self) -> list[StudyPlan]:
        plans = await self._load(CollectionName.STUDY_PLANS, StudyPlan)
        return sorted(plans, key=lambda p: p.created_at, reverse=True)

    async def upcoming_deadlines(self, days_ahead: int = 30) -> list[StudyPlan]:
        """Active plans whose target date falls within days_ahead, soonest first."""
        now = self.clock()
        horizon = (now + timedelta(days=days_ahead)).date()
        plans = await self._load(CollectionName.STUDY_PLANS, StudyPlan)
        return sorted(
            (p for p in plans if p.is_active and p.target_date <= horizon),
            key=lambda p: p.target_date,
        )

    async def user_stats(self, user_id: str) -> dict:
        now = self.clock()
        plans = [p for p in await self._load(CollectionName.STUDY_PLANS, StudyPlan) if p.user_id == user_id]
        by_status = {status.value: 0 for status in PlanStatus}
        for p in plans:
            by_status[p.status.value] += 1
        active = [p for p in plans if p.is_active]
        return {
            "total": len(plans),
            "byStatus": by_status,
            "averageProgress": round(sum(p.progress for p in active) / len(active), 1) if active else 0.0,
            "overdue": sum(1 for p in active if days_until(p.target_date, now) < 0),
        }
