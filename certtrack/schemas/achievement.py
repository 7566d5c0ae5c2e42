"""Achievement Schemas — record/update payloads."""

from datetime import date

from pydantic import Field

from certtrack.schemas.base import Payload


class AchievementCreate(Payload):
    certification_id: str
    achieved_date: date
    certification_number: str | None = Field(None, max_length=100)
    expiry_date: date | None = None


class AchievementUpdate(Payload):
    achieved_date: date | None = None
    certification_number: str | None = Field(None, max_length=100)
    expiry_date: date | None = None
