"""Authorization Policy — role/resource/action checks for authenticated callers.

Invariants:
    - allows() is False for any session that does not validate
    - Ownership is a separate check (ensure_owner); allows() never looks at records
"""

import logging
from enum import Enum

from certtrack.core.domain_types import Action, Resource
from certtrack.core.errors import PermissionDeniedError
from certtrack.core.permissions import is_owner, role_allows
from certtrack.models.user import User
from certtrack.services.session_authority import SessionAuthority

logger = logging.getLogger(__name__)


def _label(value: Enum | str) -> str:
    return value.value if isinstance(value, Enum) else value


class AuthorizationPolicy:
    """Answers permission questions; raises PermissionDeniedError through require()."""

    def __init__(self, sessions: SessionAuthority):
        self.sessions = sessions

    async def allows(self, session_id: str, resource: Resource | str, action: Action | str) -> bool:
        user = await self.sessions.validate(session_id)
        if user is None:
            return False
        return role_allows(user.role, resource, action)

    def require(self, user: User, resource: Resource | str, action: Action | str) -> None:
        if not role_allows(user.role, resource, action):
            self._deny(user, resource, action)

    def ensure_owner(
        self, user: User, record_user_id: str, resource: Resource | str, action: Action | str,
    ) -> None:
        self.require(user, resource, action)
        if not is_owner(user.id, user.role, record_user_id):
            self._deny(user, resource, action)

    def _deny(self, user: User, resource: Resource | str, action: Action | str) -> None:
        resource, action = _label(resource), _label(action)
        logger.warning(
            f"Denied {action} on {resource}",
            extra={"user_id": user.id, "resource_type": resource, "action": action},
        )
        raise PermissionDeniedError(resource, action)
