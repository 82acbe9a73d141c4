"""Todo operations with read-through caching and write invalidation."""

from __future__ import annotations

import logging

from app.adapters.records.base import AbstractRecordStore, TodoRecord
from app.core.errors import ForbiddenAppError, NotFoundAppError
from app.schemas.todo import TodoCreate, TodoRead, TodoUpdate
from app.schemas.user import Role
from app.services.cache_service import CacheService, Mutation

logger = logging.getLogger(__name__)


def to_todo_read(record: TodoRecord) -> TodoRead:
    return TodoRead.model_validate(record, from_attributes=True)


class TodoService:
    """Todo CRUD. Admins see every todo, users only their own."""

    def __init__(self, records: AbstractRecordStore, cache: CacheService) -> None:
        self._records = records
        self._cache = cache

    def _user_todos(self, user_id: int) -> list[TodoRead]:
        cached = self._cache.get_user_todos(user_id)
        if cached is not None:
            return cached

        todos = [to_todo_read(t) for t in self._records.list_todos(user_id=user_id)]
        self._cache.set_user_todos(user_id, todos)
        return todos

    def _all_todos(self) -> list[TodoRead]:
        cached = self._cache.get_all_todos()
        if cached is not None:
            return cached

        todos = [to_todo_read(t) for t in self._records.list_todos()]
        self._cache.set_all_todos(todos)
        return todos

    def create(self, data: TodoCreate, user_id: int) -> TodoRead:
        """Create a todo for user_id and evict the lists that include it.

        Args:
            data: Validated payload; status defaults to pending.
            user_id: Owner of the new todo (the caller).

        Returns:
            TodoRead: The stored todo with its owner's username and email.
        """
        record = self._records.create_todo(
            user_id=user_id,
            title=data.title,
            description=data.description,
            status=data.status,
            deadline=data.deadline,
        )
        self._cache.invalidate(Mutation.TODO_CREATED, user_id=user_id)
        logger.info("todo.created", extra={"todo_id": record.id, "user_id": user_id})
        return to_todo_read(record)

    def find_all(self, user_id: int, role: Role) -> list[TodoRead]:
        """Return every todo for admins, otherwise the caller's own (cached)."""
        if role == Role.ADMIN:
            return self._all_todos()
        return self._user_todos(user_id)

    def find_one(self, todo_id: int, user_id: int, role: Role) -> TodoRead:
        """Load one todo straight from the system of record.

        Args:
            todo_id: Todo to load.
            user_id: Id of the caller.
            role: Caller role; admins may read any todo.

        Returns:
            TodoRead: The todo.

        Raises:
            NotFoundAppError: If the todo does not exist.
            ForbiddenAppError: If a non-admin caller does not own it.
        """
        record = self._records.find_todo(todo_id)
        if record is None:
            raise NotFoundAppError(
                code="todo_not_found",
                message="Todo not found",
                details={"resource": "todo", "resource_id": todo_id},
            )
        if role != Role.ADMIN and record.user_id != user_id:
            raise ForbiddenAppError(code="access_denied", message="Access denied")
        return to_todo_read(record)

    def update(self, todo_id: int, data: TodoUpdate, user_id: int, role: Role) -> TodoRead:
        """Apply the fields present in data and evict the owner's lists.

        Fields left out of the payload keep their value. Invalidation targets
        the todo's owner, not the caller, so admin edits reach the right keys.

        Returns:
            TodoRead: The updated todo.

        Raises:
            NotFoundAppError: If the todo does not exist.
            ForbiddenAppError: If a non-admin caller does not own it.
        """
        todo = self.find_one(todo_id, user_id, role)
        record = self._records.update_todo(todo_id, data.model_dump(exclude_unset=True))
        self._cache.invalidate(Mutation.TODO_UPDATED, user_id=todo.user_id)
        return to_todo_read(record)

    def remove(self, todo_id: int, user_id: int, role: Role) -> TodoRead:
        """Delete a todo and return it as it was before deletion.

        Raises:
            NotFoundAppError: If the todo does not exist.
            ForbiddenAppError: If a non-admin caller does not own it.
        """
        todo = self.find_one(todo_id, user_id, role)
        record = self._records.delete_todo(todo_id)
        self._cache.invalidate(Mutation.TODO_DELETED, user_id=todo.user_id)
        logger.info("todo.deleted", extra={"todo_id": todo_id, "user_id": todo.user_id})
        return to_todo_read(record)

    def find_by_user(self, target_user_id: int, user_id: int, role: Role) -> list[TodoRead]:
        """Return target_user_id's todos through the per-user cache.

        Raises:
            ForbiddenAppError: If a non-admin asks for someone else's todos.
        """
        if role != Role.ADMIN and target_user_id != user_id:
            raise ForbiddenAppError(code="access_denied", message="Access denied")
        return self._user_todos(target_user_id)
