"""Self-service profile operations."""

from __future__ import annotations

import logging

from app.adapters.records.base import AbstractRecordStore, UserRecord
from app.core.errors import ConflictAppError, NotFoundAppError
from app.schemas.user import ProfileUpdate, UserRead
from app.services.cache_service import CacheService, Mutation
from app.services.session_service import SessionService

logger = logging.getLogger(__name__)


def to_user_read(record: UserRecord) -> UserRead:
    return UserRead.model_validate(record, from_attributes=True)


def ensure_identity_available(
    records: AbstractRecordStore,
    *,
    email: str | None,
    username: str | None,
    exclude_id: int | None = None,
) -> None:
    """Reject an email/username already owned by another user.

    Raises:
        ConflictAppError: Before any mutation is attempted.
    """
    if not email and not username:
        return
    existing = records.find_user_by_email_or_username(
        email=email, username=username, exclude_id=exclude_id
    )
    if existing is not None:
        raise ConflictAppError(
            code="user_conflict",
            message="Email or username already taken",
            details={"resource": "user"},
        )


def user_not_found(user_id: int) -> NotFoundAppError:
    return NotFoundAppError(
        code="user_not_found",
        message="User not found",
        details={"resource": "user", "resource_id": user_id},
    )


class ProfileService:
    def __init__(
        self,
        records: AbstractRecordStore,
        cache: CacheService,
        sessions: SessionService,
    ) -> None:
        self._records = records
        self._cache = cache
        self._sessions = sessions

    def get_profile(self, user_id: int) -> UserRead:
        cached = self._cache.get_user_profile(user_id)
        if cached is not None:
            return cached

        record = self._records.find_user(user_id)
        if record is None:
            raise user_not_found(user_id)

        profile = to_user_read(record)
        self._cache.set_user_profile(user_id, profile)
        return profile

    def update_profile(self, user_id: int, data: ProfileUpdate) -> UserRead:
        ensure_identity_available(
            self._records, email=data.email, username=data.username, exclude_id=user_id
        )
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        record = self._records.update_user(user_id, changes)
        self._cache.invalidate(Mutation.USER_UPDATED, user_id=user_id)
        return to_user_read(record)

    def delete_profile(self, user_id: int) -> None:
        self._records.delete_user(user_id)
        self._cache.invalidate(Mutation.USER_DELETED, user_id=user_id)
        self._sessions.delete(user_id)
        logger.info("profile.deleted", extra={"user_id": user_id})
