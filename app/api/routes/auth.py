from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Header, Request, status

from app.adapters.rate_limit.base import AUTH_RATE_LIMIT
from app.core.auth import CurrentUser, get_current_user
from app.core.container import ServiceContainer, get_container
from app.core.rate_limit import rate_limit
from app.schemas.admin import MessageResponse
from app.schemas.session import UserSession
from app.schemas.user import LoginRequest, RegisterRequest, UserRead

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/register",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit(AUTH_RATE_LIMIT))],
)
def register(
    data: RegisterRequest,
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> UserRead:
    """Create a regular user account.

    Raises:
        ConflictAppError: Email or username already taken (409).
    """
    return container.auth.register(data)


@router.post(
    "/login",
    response_model=UserSession,
    dependencies=[Depends(rate_limit(AUTH_RATE_LIMIT))],
)
def login(
    data: LoginRequest,
    request: Request,
    container: Annotated[ServiceContainer, Depends(get_container)],
    user_agent: Annotated[str | None, Header()] = None,
) -> UserSession:
    """Verify credentials and open a session.

    The returned ``user_id`` is the value to send as ``X-User-Id`` on
    subsequent requests.
    """
    return container.auth.login(
        data,
        ip_address=request.client.host if request.client else None,
        user_agent=user_agent,
    )


@router.post("/logout", response_model=MessageResponse)
def logout(
    user: Annotated[CurrentUser, Depends(get_current_user)],
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> MessageResponse:
    container.auth.logout(user.id)
    return MessageResponse(message="Logged out successfully")
