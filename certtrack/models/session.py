"""Session record — bearer session created at login, soft-deleted at logout."""

from datetime import datetime

from certtrack.core.clock import as_utc
from certtrack.models.base import RecordModel


class Session(RecordModel):
    user_id: str
    created_at: datetime
    expires_at: datetime
    is_active: bool = True

    def is_usable(self, now: datetime) -> bool:
        return self.is_active and as_utc(self.expires_at) > as_utc(now)
