"""Session Authority — issues, validates and revokes bearer session tokens.

Invariants:
    - Unknown email and wrong password fail with the SAME AuthError (no account enumeration)
    - A session is usable only while isActive and expiresAt > now
    - logout() soft-deletes (isActive=false); records are removed only by cleanup_expired()
    - login() writes sessions first, then stamps lastLoginAt on the user: two
      independent writes, a crash between them leaves a session without the stamp
    - validate() never raises for a bad token: it answers None ("not authenticated")

Design Decisions:
    - Tokens are 256-bit url-safe random strings (the session id IS the bearer token)
    - TTL is a constructor argument fed from settings.session_ttl_hours
"""

import logging
import secrets
from datetime import timedelta

from certtrack.core.clock import as_utc, utcnow
from certtrack.core.domain_types import CollectionName
from certtrack.core.errors import AuthError, NotFoundError, ValidationError
from certtrack.core.repository_protocols import AuditSink, CollectionStore, PasswordHasher
from certtrack.models.session import Session
from certtrack.models.user import User
from certtrack.schemas.auth import LoginResponse
from certtrack.services.collection_io import Clock, CollectionService

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


class SessionAuthority(CollectionService):
    """Login / logout / validate / change-password over the users and sessions collections."""

    def __init__(
        self,
        store: CollectionStore,
        hasher: PasswordHasher,
        ttl_hours: int = 24,
        audit: AuditSink | None = None,
        clock: Clock = utcnow,
    ):
        super().__init__(store, audit, clock)
        self.hasher = hasher
        self.ttl = timedelta(hours=ttl_hours)

    async def login(self, email: str, password: str) -> LoginResponse:
        users = await self._load(CollectionName.USERS, User)
        email = email.strip().lower()
        user = next((u for u in users if u.email.lower() == email), None)
        if user is None or not self.hasher.verify(password, user.password_hash):
            logger.warning("Login failed", extra={"action": "login"})
            raise AuthError()

        now = self.clock()
        sessions = await self._load(CollectionName.SESSIONS, Session)
        session = sessions.put(Session(
            id=secrets.token_urlsafe(32),
            user_id=user.id,
            created_at=now,
            expires_at=now + self.ttl,
        ))
        await self._persist(sessions, f"Create session for user {user.id}")

        user = users.put(user.model_copy(update={"last_login_at": now, "updated_at": now}))
        await self._persist(users, f"Record login for user {user.id}")

        logger.info("Login succeeded", extra={"user_id": user.id})
        return LoginResponse(
            session_id=session.id,
            user=user.public_view(),
            must_change_password=user.must_change_password,
        )

    async def validate(self, session_id: str | None) -> User | None:
        if not session_id:
            return None
        sessions = await self._load(CollectionName.SESSIONS, Session)
        session = sessions.get(session_id)
        if session is None or not session.is_usable(self.clock()):
            return None
        users = await self._load(CollectionName.USERS, User)
        return users.get(session.user_id)

    async def logout(self, session_id: str) -> bool:
        """Deactivate the session. Returns False if there was nothing to deactivate."""
        sessions = await self._load(CollectionName.SESSIONS, Session)
        session = sessions.get(session_id)
        if session is None or not session.is_active:
            return False
        sessions.put(session.model_copy(update={"is_active": False}))
        await self._persist(sessions, f"End session for user {session.user_id}")
        logger.info("Logout", extra={"user_id": session.user_id})
        return True

    async def change_password(self, user_id: str, old_password: str, new_password: str) -> None:
        if len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters", "newPassword",
            )
        users = await self._load(CollectionName.USERS, User)
        user = users.get(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        if not self.hasher.verify(old_password, user.password_hash):
            raise AuthError("Current password is incorrect")

        users.put(user.model_copy(update={
            "password_hash": self.hasher.hash(new_password),
            "must_change_password": False,
            "updated_at": self.clock(),
        }))
        await self._persist(users, f"Change password for user {user_id}")
        self._audit(user_id, "change_password", "user", user_id)

    async def cleanup_expired(self) -> int:
        """Drop inactive and expired sessions. Returns how many were removed."""
        now = as_utc(self.clock())
        sessions = await self._load(CollectionName.SESSIONS, Session)
        keep = [s for s in sessions if s.is_usable(now)]
        removed = len(sessions) - len(keep)
        if removed:
            sessions.replace_all(keep)
            await self._persist(sessions, f"Remove {removed} expired sessions")
        logger.info(f"Session cleanup removed {removed}", extra={"count": removed})
        return removed
