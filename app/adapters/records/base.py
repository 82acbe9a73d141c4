"""System-of-record interface.

Business services read and write users and todos only through this interface.
Implementations signal missing rows with NotFoundAppError (or a None return
for lookups) and uniqueness violations with ConflictAppError.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from app.schemas.todo import TodoStatus
from app.schemas.user import Role


@dataclass(frozen=True)
class OwnerRef:
    id: int
    username: str
    email: str


@dataclass
class UserRecord:
    id: int
    email: str
    username: str
    password_hash: str
    first_name: str | None
    last_name: str | None
    role: Role
    created_at: datetime
    updated_at: datetime


@dataclass
class TodoRecord:
    id: int
    title: str
    description: str | None
    status: TodoStatus
    deadline: datetime | None
    user_id: int
    owner: OwnerRef
    created_at: datetime
    updated_at: datetime


class AbstractRecordStore(ABC):
    """Interface for the relational system of record."""

    @abstractmethod
    def find_user(self, user_id: int) -> UserRecord | None:
        raise NotImplementedError

    @abstractmethod
    def find_user_by_email_or_username(
        self,
        *,
        email: str | None = None,
        username: str | None = None,
        exclude_id: int | None = None,
    ) -> UserRecord | None:
        """Return any user (other than exclude_id) owning the email or username."""
        raise NotImplementedError

    @abstractmethod
    def list_users(self) -> list[UserRecord]:
        """Return all users, newest first."""
        raise NotImplementedError

    @abstractmethod
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
        """Create a user, hashing the password.

        Raises:
            ConflictAppError: If the email or username is taken.
        """
        raise NotImplementedError

    @abstractmethod
    def update_user(self, user_id: int, changes: dict[str, Any]) -> UserRecord:
        """Apply changes to a user.

        Raises:
            NotFoundAppError: If the user does not exist.
            ConflictAppError: If the new email or username is taken.
        """
        raise NotImplementedError

    @abstractmethod
    def delete_user(self, user_id: int) -> None:
        """Delete a user and every todo they own.

        Raises:
            NotFoundAppError: If the user does not exist.
        """
        raise NotImplementedError

    @abstractmethod
    def count_users(self, *, role: Role | None = None) -> int:
        raise NotImplementedError

    @abstractmethod
    def verify_credentials(self, identifier: str, password: str) -> UserRecord | None:
        """Return the user matching email/username and password, else None."""
        raise NotImplementedError

    @abstractmethod
    def find_todo(self, todo_id: int) -> TodoRecord | None:
        raise NotImplementedError

    @abstractmethod
    def list_todos(self, *, user_id: int | None = None) -> list[TodoRecord]:
        """Return todos (optionally of one owner), newest first."""
        raise NotImplementedError

    @abstractmethod
    def create_todo(
        self,
        *,
        user_id: int,
        title: str,
        description: str | None = None,
        status: TodoStatus = TodoStatus.PENDING,
        deadline: datetime | None = None,
    ) -> TodoRecord:
        raise NotImplementedError

    @abstractmethod
    def update_todo(self, todo_id: int, changes: dict[str, Any]) -> TodoRecord:
        raise NotImplementedError

    @abstractmethod
    def delete_todo(self, todo_id: int) -> TodoRecord:
        raise NotImplementedError

    @abstractmethod
    def count_todos(self, *, status: TodoStatus | None = None, user_id: int | None = None) -> int:
        raise NotImplementedError

    def ping(self) -> bool:
        """Cheap connectivity check used by the health endpoint."""
        self.count_users()
        return True
