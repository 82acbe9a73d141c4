"""Admin views over all users and todos, backed by the global cache keys."""

from __future__ import annotations

import logging

from app.adapters.records.base import AbstractRecordStore
from app.schemas.admin import AdminUserDetail, SystemStats
from app.schemas.todo import TodoRead, TodoStatus
from app.schemas.user import AdminUserRead, Role, UserRead, UserUpdate
from app.services.cache_service import CacheService, Mutation
from app.services.profile_service import ensure_identity_available, to_user_read, user_not_found
from app.services.session_service import SessionService
from app.services.todo_service import to_todo_read

logger = logging.getLogger(__name__)


class AdminService:
    """User management and aggregates for administrators.

    Listings and stats read through the global ``admin:*`` keys; every write
    goes to the system of record first and then evicts what it affects.
    """

    def __init__(
        self,
        records: AbstractRecordStore,
        cache: CacheService,
        sessions: SessionService,
    ) -> None:
        self._records = records
        self._cache = cache
        self._sessions = sessions

    def list_users(self) -> list[AdminUserRead]:
        """Return every user with their todo count (cached under admin:all-users)."""
        cached = self._cache.get_all_users()
        if cached is not None:
            return cached

        users = [
            AdminUserRead(
                **to_user_read(record).model_dump(),
                todo_count=self._records.count_todos(user_id=record.id),
            )
            for record in self._records.list_users()
        ]
        self._cache.set_all_users(users)
        return users

    def get_user(self, user_id: int) -> AdminUserDetail:
        """Return a user and their todos, read uncached.

        Raises:
            NotFoundAppError: If the user does not exist.
        """
        record = self._records.find_user(user_id)
        if record is None:
            raise user_not_found(user_id)
        todos = [to_todo_read(t) for t in self._records.list_todos(user_id=user_id)]
        return AdminUserDetail(**to_user_read(record).model_dump(), todos=todos)

    def update_user(self, user_id: int, data: UserUpdate) -> UserRead:
        """Update a user's identity or role.

        A role change deletes the user's session so the next request
        re-authenticates with the new role.

        Args:
            user_id: User to update.
            data: Partial update; null fields are ignored.

        Returns:
            UserRead: The updated user.

        Raises:
            NotFoundAppError: If the user does not exist.
            ConflictAppError: If the new email or username is taken.
        """
        if self._records.find_user(user_id) is None:
            raise user_not_found(user_id)
        ensure_identity_available(
            self._records, email=data.email, username=data.username, exclude_id=user_id
        )

        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        record = self._records.update_user(user_id, changes)
        self._cache.invalidate(Mutation.USER_UPDATED, user_id=user_id)

        # Sessions carry the role; force a fresh login after a role change.
        if "role" in changes:
            self._sessions.delete(user_id)
        return to_user_read(record)

    def delete_user(self, user_id: int) -> None:
        """Delete a user with their todos, cached data and session.

        Raises:
            NotFoundAppError: If the user does not exist.
        """
        if self._records.find_user(user_id) is None:
            raise user_not_found(user_id)

        self._records.delete_user(user_id)
        self._cache.invalidate(Mutation.USER_DELETED, user_id=user_id)
        self._sessions.delete(user_id)
        logger.info("admin.user_deleted", extra={"user_id": user_id})

    def list_all_todos(self) -> list[TodoRead]:
        cached = self._cache.get_all_todos()
        if cached is not None:
            return cached

        todos = [to_todo_read(t) for t in self._records.list_todos()]
        self._cache.set_all_todos(todos)
        return todos

    def system_stats(self) -> SystemStats:
        """Return user and todo counts.

        Returns:
            SystemStats: Totals, with pending counting every non-completed
                todo. Cached under admin:system-stats.
        """
        cached = self._cache.get_system_stats()
        if cached is not None:
            return cached

        total_users = self._records.count_users()
        total_todos = self._records.count_todos()
        admin_users = self._records.count_users(role=Role.ADMIN)
        completed_todos = self._records.count_todos(status=TodoStatus.COMPLETED)

        stats = SystemStats(
            total_users=total_users,
            total_todos=total_todos,
            admin_users=admin_users,
            regular_users=total_users - admin_users,
            completed_todos=completed_todos,
            pending_todos=total_todos - completed_todos,
        )
        self._cache.set_system_stats(stats)
        return stats
