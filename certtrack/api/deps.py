"""Request Dependencies — registry lookup and bearer-session authentication.

Invariants:
    - The registry lives on app.state (built by the lifespan, or set by tests)
    - Missing, malformed, expired or revoked tokens all fail with the same AuthError
    - require_admin() goes through AuthorizationPolicy (maintenance/run)
"""

from fastapi import Depends, Request

from certtrack.core.domain_types import Action, Resource
from certtrack.core.errors import AuthError
from certtrack.models.user import User
from certtrack.services.registry import ServiceRegistry

BEARER_PREFIX = "bearer "


def get_registry(request: Request) -> ServiceRegistry:
    return request.app.state.registry


def bearer_token(request: Request) -> str:
    header = request.headers.get("Authorization", "")
    if not header.lower().startswith(BEARER_PREFIX):
        raise AuthError("Authentication required")
    token = header[len(BEARER_PREFIX):].strip()
    if not token:
        raise AuthError("Authentication required")
    return token


async def get_current_user(
    token: str = Depends(bearer_token),
    registry: ServiceRegistry = Depends(get_registry),
) -> User:
    user = await registry.sessions.validate(token)
    if user is None:
        raise AuthError("Session is invalid or expired")
    return user


async def require_admin(
    user: User = Depends(get_current_user),
    registry: ServiceRegistry = Depends(get_registry),
) -> User:
    registry.authorization.require(user, Resource.MAINTENANCE, Action.RUN)
    return user
