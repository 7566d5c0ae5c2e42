"""User record — members and admins; the only record that holds a password hash."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from certtrack.core.domain_types import UserRole
from certtrack.models.base import RecordModel


class User(RecordModel):
    email: str
    name: str
    role: UserRole = UserRole.MEMBER
    password_hash: str
    must_change_password: bool = True
    created_at: datetime
    updated_at: datetime
    last_login_at: datetime | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def public_view(self) -> "PublicUser":
        return PublicUser.model_validate(self.model_dump(exclude={"password_hash"}))


class PublicUser(BaseModel):
    """User as exposed to collaborators — never carries the password hash."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    email: str
    name: str
    role: UserRole
    must_change_password: bool
    created_at: datetime
    updated_at: datetime
    last_login_at: datetime | None = None
