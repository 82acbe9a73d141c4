from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status

from app.adapters.rate_limit.base import API_RATE_LIMIT
from app.core.auth import CurrentUser, get_current_user
from app.core.container import ServiceContainer, get_container
from app.core.rate_limit import rate_limit
from app.schemas.todo import TodoCreate, TodoRead, TodoUpdate

router = APIRouter(
    prefix="/todos",
    tags=["Todos"],
    dependencies=[Depends(get_current_user), Depends(rate_limit(API_RATE_LIMIT))],
)

Caller = Annotated[CurrentUser, Depends(get_current_user)]
Container = Annotated[ServiceContainer, Depends(get_container)]


@router.post("", response_model=TodoRead, status_code=status.HTTP_201_CREATED)
def create_todo(data: TodoCreate, user: Caller, container: Container) -> TodoRead:
    return container.todos.create(data, user.id)


@router.get("", response_model=list[TodoRead])
def list_todos(user: Caller, container: Container) -> list[TodoRead]:
    """List the caller's todos, or every todo for an admin."""
    return container.todos.find_all(user.id, user.role)


# Declared before /{todo_id} so "user" is not parsed as an id.
@router.get("/user/{user_id}", response_model=list[TodoRead])
def list_user_todos(user_id: int, user: Caller, container: Container) -> list[TodoRead]:
    return container.todos.find_by_user(user_id, user.id, user.role)


@router.get("/{todo_id}", response_model=TodoRead)
def get_todo(todo_id: int, user: Caller, container: Container) -> TodoRead:
    return container.todos.find_one(todo_id, user.id, user.role)


@router.patch("/{todo_id}", response_model=TodoRead)
def update_todo(todo_id: int, data: TodoUpdate, user: Caller, container: Container) -> TodoRead:
    return container.todos.update(todo_id, data, user.id, user.role)


@router.delete("/{todo_id}", response_model=TodoRead)
def delete_todo(todo_id: int, user: Caller, container: Container) -> TodoRead:
    """Delete a todo and return the removed item."""
    return container.todos.remove(todo_id, user.id, user.role)
