"""In-memory system of record for users and todos.

Stands in for the relational database in tests and local development. It
enforces the same constraints the database would: unique email/username,
cascading todo deletion, and NotFound on missing rows.
"""

from __future__ import annotations

import hashlib
import hmac
import itertools
import secrets
import threading
import time
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable

from app.adapters.records.base import AbstractRecordStore, OwnerRef, TodoRecord, UserRecord
from app.core.errors import ConflictAppError, NotFoundAppError
from app.schemas.todo import TodoStatus
from app.schemas.user import Role

_PBKDF2_ITERATIONS = 100_000

_USER_FIELDS = {"email", "username", "first_name", "last_name", "role"}
_TODO_FIELDS = {"title", "description", "status", "deadline"}


def hash_password(password: str, *, salt: str | None = None) -> str:
    """Hash a password as ``salt$hexdigest`` using PBKDF2-SHA256."""
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), _PBKDF2_ITERATIONS)
    return f"{salt}${digest.hex()}"


def check_password(password: str, password_hash: str) -> bool:
    salt, _, _ = password_hash.partition("$")
    return hmac.compare_digest(hash_password(password, salt=salt), password_hash)


class InMemoryRecordStore(AbstractRecordStore):
    """Thread-safe dict-backed record store."""

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._lock = threading.RLock()
        self._users: dict[int, UserRecord] = {}
        self._todos: dict[int, TodoRecord] = {}
        self._user_ids = itertools.count(1)
        self._todo_ids = itertools.count(1)

    def _now(self) -> datetime:
        return datetime.fromtimestamp(self._clock(), tz=timezone.utc)

    @staticmethod
    def _newest_first(records: list[Any]) -> list[Any]:
        return sorted(records, key=lambda r: (r.created_at, r.id), reverse=True)

    def _ensure_unique_locked(
        self, email: str | None, username: str | None, exclude_id: int | None
    ) -> None:
        if self._find_conflict_locked(email, username, exclude_id) is not None:
            raise ConflictAppError(
                code="user_conflict",
                message="Email or username already taken",
                details={"resource": "user"},
            )

    def _find_conflict_locked(
        self, email: str | None, username: str | None, exclude_id: int | None
    ) -> UserRecord | None:
        if not email and not username:
            return None
        for user in self._users.values():
            if user.id == exclude_id:
                continue
            if (email and user.email == email) or (username and user.username == username):
                return user
        return None

    def _get_user_locked(self, user_id: int) -> UserRecord:
        user = self._users.get(user_id)
        if user is None:
            raise NotFoundAppError(
                code="user_not_found",
                message="User not found",
                details={"resource": "user", "resource_id": user_id},
            )
        return user

    def _get_todo_locked(self, todo_id: int) -> TodoRecord:
        todo = self._todos.get(todo_id)
        if todo is None:
            raise NotFoundAppError(
                code="todo_not_found",
                message="Todo not found",
                details={"resource": "todo", "resource_id": todo_id},
            )
        return todo

    # Users

    def find_user(self, user_id: int) -> UserRecord | None:
        with self._lock:
            user = self._users.get(user_id)
            return replace(user) if user else None

    def find_user_by_email_or_username(
        self,
        *,
        email: str | None = None,
        username: str | None = None,
        exclude_id: int | None = None,
    ) -> UserRecord | None:
        with self._lock:
            user = self._find_conflict_locked(email, username, exclude_id)
            return replace(user) if user else None

    def list_users(self) -> list[UserRecord]:
        with self._lock:
            return [replace(u) for u in self._newest_first(list(self._users.values()))]

    def create_user(
        self,
        *,
        email: str,
        username: str,
        password: str,
        first_name: str | None = None,
        last_name: str | None = None,
        role: Role = Role.USER,
    ) -> UserRecord:
        with self._lock:
            self._ensure_unique_locked(email, username, None)
            now = self._now()
            user = UserRecord(
                id=next(self._user_ids),
                email=email,
                username=username,
                password_hash=hash_password(password),
                first_name=first_name,
                last_name=last_name,
                role=role,
                created_at=now,
                updated_at=now,
            )
            self._users[user.id] = user
            return replace(user)

    def update_user(self, user_id: int, changes: dict[str, Any]) -> UserRecord:
        unknown = set(changes) - _USER_FIELDS
        if unknown:
            raise ValueError(f"unknown user fields: {sorted(unknown)}")

        with self._lock:
            user = self._get_user_locked(user_id)
            self._ensure_unique_locked(changes.get("email"), changes.get("username"), user_id)
            for name, value in changes.items():
                setattr(user, name, value)
            user.updated_at = self._now()

            owner = OwnerRef(id=user.id, username=user.username, email=user.email)
            for todo in self._todos.values():
                if todo.user_id == user_id:
                    todo.owner = owner
            return replace(user)

    def delete_user(self, user_id: int) -> None:
        with self._lock:
            self._get_user_locked(user_id)
            del self._users[user_id]
            for todo_id in [t.id for t in self._todos.values() if t.user_id == user_id]:
                del self._todos[todo_id]

    def count_users(self, *, role: Role | None = None) -> int:
        with self._lock:
            return sum(1 for u in self._users.values() if role is None or u.role == role)

    def verify_credentials(self, identifier: str, password: str) -> UserRecord | None:
        with self._lock:
            user = self._find_conflict_locked(identifier, identifier, None)
            if user is None or not check_password(password, user.password_hash):
                return None
            return replace(user)

    # Todos

    def find_todo(self, todo_id: int) -> TodoRecord | None:
        with self._lock:
            todo = self._todos.get(todo_id)
            return replace(todo) if todo else None

    def list_todos(self, *, user_id: int | None = None) -> list[TodoRecord]:
        with self._lock:
            todos = [t for t in self._todos.values() if user_id is None or t.user_id == user_id]
            return [replace(t) for t in self._newest_first(todos)]

    def create_todo(
        self,
        *,
        user_id: int,
        title: str,
        description: str | None = None,
        status: TodoStatus = TodoStatus.PENDING,
        deadline: datetime | None = None,
    ) -> TodoRecord:
        with self._lock:
            owner = self._get_user_locked(user_id)
            now = self._now()
            todo = TodoRecord(
                id=next(self._todo_ids),
                title=title,
                description=description,
                status=status,
                deadline=deadline,
                user_id=user_id,
                owner=OwnerRef(id=owner.id, username=owner.username, email=owner.email),
                created_at=now,
                updated_at=now,
            )
            self._todos[todo.id] = todo
            return replace(todo)

    def update_todo(self, todo_id: int, changes: dict[str, Any]) -> TodoRecord:
        unknown = set(changes) - _TODO_FIELDS
        if unknown:
            raise ValueError(f"unknown todo fields: {sorted(unknown)}")

        with self._lock:
            todo = self._get_todo_locked(todo_id)
            for name, value in changes.items():
                setattr(todo, name, value)
            todo.updated_at = self._now()
            return replace(todo)

    def delete_todo(self, todo_id: int) -> TodoRecord:
        with self._lock:
            todo = self._get_todo_locked(todo_id)
            del self._todos[todo_id]
            return todo

    def count_todos(self, *, status: TodoStatus | None = None, user_id: int | None = None) -> int:
        with self._lock:
            return sum(
                1
                for t in self._todos.values()
                if (status is None or t.status == status)
                and (user_id is None or t.user_id == user_id)
            )
