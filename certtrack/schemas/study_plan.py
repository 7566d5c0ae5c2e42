"""Study Plan Schemas — create/update payloads.

Invariants:
    - Dates are ISO calendar dates (YYYY-MM-DD)
    - progress range and date ordering are domain rules, checked by the lifecycle
"""

from datetime import date

from certtrack.core.domain_types import PlanStatus
from certtrack.schemas.base import Payload


class StudyPlanCreate(Payload):
    certification_id: str
    start_date: date
    target_date: date


class StudyPlanUpdate(Payload):
    start_date: date | None = None
    target_date: date | None = None
    progress: int | None = None
    status: PlanStatus | None = None


class ProgressUpdate(Payload):
    progress: int
