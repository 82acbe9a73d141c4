from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from app.adapters.rate_limit.base import API_RATE_LIMIT
from app.core.auth import CurrentUser, get_current_user
from app.core.container import ServiceContainer, get_container
from app.core.rate_limit import rate_limit
from app.schemas.admin import MessageResponse
from app.schemas.user import ProfileUpdate, UserRead

router = APIRouter(
    prefix="/profile",
    tags=["Profile"],
    dependencies=[Depends(get_current_user), Depends(rate_limit(API_RATE_LIMIT))],
)

Caller = Annotated[CurrentUser, Depends(get_current_user)]
Container = Annotated[ServiceContainer, Depends(get_container)]


@router.get("", response_model=UserRead)
def get_profile(user: Caller, container: Container) -> UserRead:
    return container.profiles.get_profile(user.id)


@router.patch("", response_model=UserRead)
def update_profile(data: ProfileUpdate, user: Caller, container: Container) -> UserRead:
    return container.profiles.update_profile(user.id, data)


@router.delete("", response_model=MessageResponse)
def delete_profile(user: Caller, container: Container) -> MessageResponse:
    """Delete the caller's account, todos, cached data and session."""
    container.profiles.delete_profile(user.id)
    return MessageResponse(message="Profile deleted successfully")
