"""Registration, login and logout.

Password verification is delegated to the record store; this service only
turns a verified identity into a server-side session.
"""

from __future__ import annotations

import logging

from app.adapters.records.base import AbstractRecordStore
from app.core.errors import AuthenticationAppError
from app.core.logging import hash_identifier
from app.schemas.session import UserSession
from app.schemas.user import LoginRequest, RegisterRequest, UserRead
from app.services.cache_service import CacheService, Mutation
from app.services.profile_service import ensure_identity_available, to_user_read
from app.services.session_service import SessionService
from app.services.todo_service import to_todo_read

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(
        self,
        records: AbstractRecordStore,
        cache: CacheService,
        sessions: SessionService,
    ) -> None:
        self._records = records
        self._cache = cache
        self._sessions = sessions

    def register(self, data: RegisterRequest) -> UserRead:
        ensure_identity_available(self._records, email=data.email, username=data.username)
        record = self._records.create_user(
            email=data.email,
            username=data.username,
            password=data.password,
            first_name=data.first_name,
            last_name=data.last_name,
        )
        self._cache.invalidate(Mutation.USER_CREATED)
        logger.info("auth.registered", extra={"user_id": record.id})
        return to_user_read(record)

    def login(
        self,
        data: LoginRequest,
        *,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> UserSession:
        """Verify credentials and open a session.

        Raises:
            AuthenticationAppError: If the credentials do not match a user.
        """
        record = self._records.verify_credentials(data.identifier, data.password)
        if record is None:
            logger.warning(
                "auth.login_failed",
                extra={"identifier_hash": hash_identifier(data.identifier)},
            )
            raise AuthenticationAppError(
                code="invalid_credentials",
                message="Invalid credentials",
            )

        session = self._sessions.create(
            user_id=record.id,
            username=record.username,
            role=record.role,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        # First requests after login read the profile and todo list.
        todos = [to_todo_read(t) for t in self._records.list_todos(user_id=record.id)]
        self._cache.warm_user_cache(record.id, todos, to_user_read(record))
        return session

    def logout(self, user_id: int) -> None:
        self._sessions.delete(user_id)
