"""Study Plan Enforcement — pure state machine and creation rules for study plans.

Invariants:
    - next_status is PURE: maps (current status, progress) to the next status
    - Progress outside [0, 100] is rejected before any transition is computed
    - Cancelled is reachable only by explicit status assignment, never by progress
    - Completed/Cancelled plans refuse progress mutation (TerminalPlanError)
    - At most one plan per (user, certification) in Planning/InProgress, checked at creation

Design Decisions:
    - Shell loads the collection, calls these checks, then applies and persists
      (ADR: pure core, impure edges)
    - Terminal plans are frozen for progress; reopening goes through explicit status
      assignment so the transition is always intentional
"""

from datetime import date
from typing import Iterable

from certtrack.core.domain_types import PlanStatus, TERMINAL_PLAN_STATUSES
from certtrack.core.errors import (
    DuplicateActiveRecordError, TerminalPlanError, ValidationError,
)
from certtrack.models.study_plan import StudyPlan

MIN_PROGRESS: int = 0
MAX_PROGRESS: int = 100


def check_progress_range(progress: int) -> None:
    if isinstance(progress, bool) or not isinstance(progress, int):
        raise ValidationError("Progress must be an integer", "progress")
    if progress < MIN_PROGRESS or progress > MAX_PROGRESS:
        raise ValidationError(
            f"Progress must be between {MIN_PROGRESS} and {MAX_PROGRESS}", "progress",
        )


def next_status(current: PlanStatus, progress: int) -> PlanStatus:
    """Status after setting progress. Terminal states have no progress transition."""
    check_progress_range(progress)
    if current in TERMINAL_PLAN_STATUSES:
        return current
    if progress == MAX_PROGRESS:
        return PlanStatus.COMPLETED
    if progress == MIN_PROGRESS:
        return PlanStatus.PLANNING
    return PlanStatus.IN_PROGRESS


def apply_progress(plan: StudyPlan, progress: int) -> tuple[int, PlanStatus]:
    """Validate and compute (progress, status) for a progress update."""
    check_progress_range(progress)
    if plan.status in TERMINAL_PLAN_STATUSES:
        raise TerminalPlanError(plan.id, plan.status.value)
    return progress, next_status(plan.status, progress)


def check_date_order(start_date: date, target_date: date) -> None:
    if start_date > target_date:
        raise ValidationError("startDate must not be after targetDate", "targetDate")


def find_active_plan(
    plans: Iterable[StudyPlan], user_id: str, certification_id: str,
) -> StudyPlan | None:
    for plan in plans:
        if (
            plan.user_id == user_id
            and plan.certification_id == certification_id
            and plan.is_active
        ):
            return plan
    return None


def check_no_active_plan(
    plans: Iterable[StudyPlan], user_id: str, certification_id: str,
) -> None:
    if find_active_plan(plans, user_id, certification_id) is not None:
        raise DuplicateActiveRecordError("study plan", user_id, certification_id)
