"""User Directory — admin-managed users and the bootstrap admin.

Invariants:
    - Email is unique (case-insensitive) across users
    - Returned users are PublicUser views; the password hash never leaves this service
    - create_user() generates the initial password and returns it exactly once;
      the user must change it on first login
    - delete_user() also drops every session of that user
    - ensure_default_admin() creates an admin only if no admin exists (idempotent)
"""

import logging
import secrets

from certtrack.core.clock import utcnow
from certtrack.core.domain_types import CollectionName, UserRole
from certtrack.core.errors import ConflictError, NotFoundError
from certtrack.core.repository_protocols import AuditSink, CollectionStore, PasswordHasher
from certtrack.models.base import new_id
from certtrack.models.session import Session
from certtrack.models.user import PublicUser, User
from certtrack.schemas.user import UserCreate, UserUpdate
from certtrack.services.collection_io import Clock, CollectionService

logger = logging.getLogger(__name__)

RESOURCE = "user"


def generate_initial_password() -> str:
    return secrets.token_urlsafe(12)


class UserDirectory(CollectionService):
    """User CRUD over the users collection."""

    def __init__(
        self,
        store: CollectionStore,
        hasher: PasswordHasher,
        audit: AuditSink | None = None,
        clock: Clock = utcnow,
    ):
        super().__init__(store, audit, clock)
        self.hasher = hasher

    async def create_user(
        self, payload: UserCreate, actor: str | None = None,
    ) -> tuple[PublicUser, str]:
        """Returns the new user and its generated initial password."""
        users = await self._load(CollectionName.USERS, User)
        if any(u.email.lower() == payload.email for u in users):
            raise ConflictError("A user with this email already exists", "EMAIL_TAKEN")

        password = generate_initial_password()
        now = self.clock()
        user = users.put(User(
            id=new_id(),
            email=payload.email,
            name=payload.name,
            role=payload.role,
            password_hash=self.hasher.hash(password),
            must_change_password=True,
            created_at=now,
            updated_at=now,
        ))
        await self._persist(users, f"Create user {user.id}")
        self._audit(actor, "create", RESOURCE, user.id, after=user)
        logger.info("User created", extra={"user_id": user.id})
        return user.public_view(), password

    async def get_user(self, user_id: str) -> PublicUser:
        users = await self._load(CollectionName.USERS, User)
        user = users.get(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user.public_view()

    async def list_users(self) -> list[PublicUser]:
        users = await self._load(CollectionName.USERS, User)
        return [u.public_view() for u in sorted(users, key=lambda u: u.created_at)]

    async def update_user(
        self, user_id: str, payload: UserUpdate, actor: str | None = None,
    ) -> PublicUser:
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        users = await self._load(CollectionName.USERS, User)
        before = users.get(user_id)
        if before is None:
            raise NotFoundError("User", user_id)
        email = changes.get("email")
        if email and any(u.id != user_id and u.email.lower() == email for u in users):
            raise ConflictError("A user with this email already exists", "EMAIL_TAKEN")

        user = users.put(before.model_copy(update={**changes, "updated_at": self.clock()}))
        await self._persist(users, f"Update user {user_id}")
        self._audit(actor, "update", RESOURCE, user_id, before, user)
        return user.public_view()

    async def delete_user(self, user_id: str, actor: str | None = None) -> None:
        users = await self._load(CollectionName.USERS, User)
        before = users.remove(user_id)
        if before is None:
            raise NotFoundError("User", user_id)
        await self._persist(users, f"Delete user {user_id}")

        sessions = await self._load(CollectionName.SESSIONS, Session)
        remaining = [s for s in sessions if s.user_id != user_id]
        if len(remaining) != len(sessions):
            sessions.replace_all(remaining)
            await self._persist(sessions, f"Remove sessions of deleted user {user_id}")
        self._audit(actor, "delete", RESOURCE, user_id, before=before)

    async def ensure_default_admin(self, email: str, password: str) -> PublicUser | None:
        """Create the bootstrap admin when no admin exists. Returns it, or None if skipped."""
        users = await self._load(CollectionName.USERS, User)
        if any(u.is_admin for u in users):
            return None
        email = email.strip().lower()
        if any(u.email.lower() == email for u in users):
            raise ConflictError(
                f"Cannot bootstrap admin: {email} belongs to a non-admin user", "EMAIL_TAKEN",
            )
        now = self.clock()
        admin = users.put(User(
            id=new_id(),
            email=email,
            name="Administrator",
            role=UserRole.ADMIN,
            password_hash=self.hasher.hash(password),
            must_change_password=True,
            created_at=now,
            updated_at=now,
        ))
        await self._persist(users, "Create default admin")
        logger.warning("Default admin created; change its password", extra={"user_id": admin.id})
        return admin.public_view()
