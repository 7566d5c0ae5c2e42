"""Notification record — per-user inbox item with a payload tagged by notification type.

Invariants:
    - payload.kind always equals the notification's type (checked on validation)
    - entity_id names the record a threshold notification is about; it is the
      entity component of the dedup key (userId, type, entityId, calendarDay)

Design Decisions:
    - Tagged union over an opaque dict: the scheduler reads threshold/date fields
      back out of persisted payloads, so they must be typed
"""

from datetime import date, datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from certtrack.core.domain_types import CertificationCategory, NotificationType
from certtrack.models.base import RecordModel


class _Payload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class PlanReminderPayload(_Payload):
    kind: Literal["plan_reminder"] = "plan_reminder"
    plan_id: str
    certification_id: str
    target_date: date
    days_until_target: int
    threshold: int

    @property
    def entity_id(self) -> str:
        return self.plan_id


class ExpiryWarningPayload(_Payload):
    kind: Literal["expiry_warning"] = "expiry_warning"
    achievement_id: str
    certification_id: str
    expiry_date: date
    days_until_expiry: int
    threshold: int

    @property
    def entity_id(self) -> str:
        return self.achievement_id


class NewCertificationPayload(_Payload):
    kind: Literal["new_certification"] = "new_certification"
    certification_id: str
    certification_name: str
    category: CertificationCategory

    @property
    def entity_id(self) -> str:
        return self.certification_id


class AchievementReportPayload(_Payload):
    kind: Literal["achievement_report"] = "achievement_report"
    achievement_id: str
    user_id: str
    user_name: str
    certification_id: str
    certification_name: str
    achieved_date: date

    @property
    def entity_id(self) -> str:
        return self.achievement_id


NotificationPayload = Annotated[
    Union[
        PlanReminderPayload,
        ExpiryWarningPayload,
        NewCertificationPayload,
        AchievementReportPayload,
    ],
    Field(discriminator="kind"),
]


class Notification(RecordModel):
    user_id: str
    type: NotificationType
    title: str
    message: str
    payload: NotificationPayload | None = None
    is_read: bool = False
    created_at: datetime

    @model_validator(mode="after")
    def payload_matches_type(self):
        if self.payload is not None and self.payload.kind != self.type.value:
            raise ValueError(
                f"payload kind {self.payload.kind} does not match type {self.type.value}",
            )
        return self

    @property
    def entity_id(self) -> str | None:
        return self.payload.entity_id if self.payload is not None else None
