"""User Schemas — admin-managed user creation and updates."""

from pydantic import Field, field_validator

from certtrack.core.domain_types import UserRole
from certtrack.schemas.base import Payload


def _email(v: str) -> str:
    v = v.strip().lower()
    if "@" not in v or v.startswith("@") or v.endswith("@"):
        raise ValueError("invalid email address")
    return v


class UserCreate(Payload):
    email: str = Field(max_length=254)
    name: str = Field(min_length=1, max_length=100)
    role: UserRole = UserRole.MEMBER

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        return _email(v)


class UserUpdate(Payload):
    email: str | None = Field(None, max_length=254)
    name: str | None = Field(None, min_length=1, max_length=100)
    role: UserRole | None = None

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str | None) -> str | None:
        return None if v is None else _email(v)
