"""Maintenance Schemas — operator-trigger bodies and results."""

from pydantic import Field

from certtrack.schemas.base import Payload


class RestoreRequest(Payload):
    backup_id: str = Field(min_length=1)


class PruneRequest(Payload):
    days: int | None = Field(None, ge=1, le=3650)


class ExpireResult(Payload):
    count: int
    achievement_ids: list[str]


class ScheduleResult(Payload):
    plan_reminders: int
    expiry_warnings: int
    total: int


class CountResult(Payload):
    count: int


class BackupInfo(Payload):
    id: str
    name: str
    created_at: str | None = None
    collections: list[str] = []
