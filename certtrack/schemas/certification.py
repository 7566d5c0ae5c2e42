"""Certification Schemas — catalog create/update payloads.

Invariants:
    - name and issuer are stripped and non-empty
    - difficulty / validityPeriod ranges are domain rules, checked by the catalog
"""

from pydantic import Field, field_validator

from certtrack.core.domain_types import CertificationCategory
from certtrack.schemas.base import Payload


class CertificationCreate(Payload):
    name: str = Field(max_length=200)
    issuer: str = Field(max_length=200)
    category: CertificationCategory
    difficulty: int
    description: str = Field("", max_length=2000)
    validity_period: int | None = None

    @field_validator("name", "issuer")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("cannot be empty or whitespace")
        return v


class CertificationUpdate(Payload):
    name: str | None = Field(None, max_length=200)
    issuer: str | None = Field(None, max_length=200)
    category: CertificationCategory | None = None
    difficulty: int | None = None
    description: str | None = Field(None, max_length=2000)
    validity_period: int | None = None

    @field_validator("name", "issuer")
    @classmethod
    def strip_text(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("cannot be empty or whitespace")
        return v
