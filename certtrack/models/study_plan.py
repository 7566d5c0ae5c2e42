"""StudyPlan record — one user's plan toward one certification."""

from datetime import date, datetime

from certtrack.core.domain_types import ACTIVE_PLAN_STATUSES, PlanStatus
from certtrack.models.base import RecordModel


class StudyPlan(RecordModel):
    user_id: str
    certification_id: str
    start_date: date
    target_date: date
    progress: int = 0
    status: PlanStatus = PlanStatus.PLANNING
    created_at: datetime
    updated_at: datetime
    # reminder countdown state; survives deletion of the notifications themselves
    last_reminder_threshold: int | None = None
    last_reminder_anchor: date | None = None

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_PLAN_STATUSES
