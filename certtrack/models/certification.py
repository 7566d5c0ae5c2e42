"""Certification record — the catalog entry plans and achievements point at."""

from datetime import datetime

from certtrack.core.domain_types import CertificationCategory
from certtrack.models.base import RecordModel


class Certification(RecordModel):
    name: str
    issuer: str
    category: CertificationCategory
    difficulty: int  # 1-5
    description: str = ""
    validity_period: int | None = None  # months
    created_at: datetime
    updated_at: datetime
