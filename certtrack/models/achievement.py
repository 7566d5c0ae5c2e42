"""Achievement record — a held certification, optionally expiring."""

from datetime import date, datetime

from certtrack.models.base import RecordModel


class Achievement(RecordModel):
    user_id: str
    certification_id: str
    achieved_date: date
    certification_number: str | None = None
    expiry_date: date | None = None
    is_active: bool = True
    created_at: datetime
    updated_at: datetime
    last_reminder_threshold: int | None = None
    last_reminder_anchor: date | None = None
