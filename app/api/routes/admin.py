from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from app.adapters.rate_limit.base import ADMIN_RATE_LIMIT
from app.core.auth import require_admin
from app.core.container import ServiceContainer, get_container
from app.core.rate_limit import rate_limit
from app.schemas.admin import AdminUserDetail, MessageResponse, SystemStats
from app.schemas.todo import TodoRead
from app.schemas.user import AdminUserRead, UserRead, UserUpdate

router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    dependencies=[Depends(require_admin), Depends(rate_limit(ADMIN_RATE_LIMIT))],
)

Container = Annotated[ServiceContainer, Depends(get_container)]


@router.get("/users", response_model=list[AdminUserRead])
def list_users(container: Container) -> list[AdminUserRead]:
    return container.admin.list_users()


@router.get("/users/{user_id}", response_model=AdminUserDetail)
def get_user(user_id: int, container: Container) -> AdminUserDetail:
    return container.admin.get_user(user_id)


@router.patch("/users/{user_id}", response_model=UserRead)
def update_user(user_id: int, data: UserUpdate, container: Container) -> UserRead:
    """Update any user, including their role.

    A role change ends the user's session so the new role applies on their
    next login.
    """
    return container.admin.update_user(user_id, data)


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(user_id: int, container: Container) -> MessageResponse:
    container.admin.delete_user(user_id)
    return MessageResponse(message=f"User {user_id} deleted successfully")


@router.get("/todos", response_model=list[TodoRead])
def list_all_todos(container: Container) -> list[TodoRead]:
    return container.admin.list_all_todos()


@router.get("/stats", response_model=SystemStats)
def system_stats(container: Container) -> SystemStats:
    return container.admin.system_stats()
