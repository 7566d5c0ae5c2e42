"""Auth Schemas — login, change-password and session responses.

Invariants:
    - Email is stripped and lowercased before lookup
    - New passwords are 8-128 chars
    - LoginResponse carries a PublicUser, never the password hash
"""

from pydantic import Field, field_validator

from certtrack.models.user import PublicUser
from certtrack.schemas.base import Payload


class LoginRequest(Payload):
    email: str = Field(min_length=3, max_length=254)
    password: str = Field(min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class LoginResponse(Payload):
    session_id: str
    user: PublicUser
    must_change_password: bool


class ChangePasswordRequest(Payload):
    old_password: str = Field(min_length=1, max_length=128)
    new_password: str = Field(min_length=8, max_length=128)
