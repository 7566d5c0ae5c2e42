"""Auth Routes — login, logout, current user and password change.

Invariants:
    - login answers 401 with one message for unknown email and wrong password
    - logout is idempotent: an already-ended session still answers 204
    - Responses carry PublicUser only
"""

from fastapi import APIRouter, Depends, Response, status

from certtrack.api.deps import bearer_token, get_current_user, get_registry
from certtrack.models.user import PublicUser, User
from certtrack.schemas.auth import ChangePasswordRequest, LoginRequest, LoginResponse
from certtrack.services.registry import ServiceRegistry

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


@router.post("/login", response_model=LoginResponse)
async def login(body: LoginRequest, registry: ServiceRegistry = Depends(get_registry)):
    return await registry.sessions.login(body.email, body.password)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    token: str = Depends(bearer_token),
    registry: ServiceRegistry = Depends(get_registry),
):
    await registry.sessions.logout(token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me", response_model=PublicUser)
async def me(user: User = Depends(get_current_user)):
    return user.public_view()


@router.post("/change-password", status_code=status.HTTP_204_NO_CONTENT)
async def change_password(
    body: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    registry: ServiceRegistry = Depends(get_registry),
):
    await registry.sessions.change_password(user.id, body.old_password, body.new_password)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
