"""Per-user session lifecycle on top of the cache service.

Sessions are keyed by user id (one live session per user). Each store write
re-arms the session TTL, so expiry slides with activity; ``is_valid`` adds a
stricter, purely logical inactivity check on top of that backstop.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Callable

from app.schemas.session import UserSession
from app.schemas.user import Role
from app.services.cache_service import CacheService

logger = logging.getLogger(__name__)


class SessionService:
    """Create, refresh, validate and delete user sessions."""

    def __init__(self, cache: CacheService, *, clock: Callable[[], float] = time.time) -> None:
        self._cache = cache
        self._clock = clock

    def _now(self) -> datetime:
        return datetime.fromtimestamp(self._clock(), tz=timezone.utc)

    def create(
        self,
        *,
        user_id: int,
        username: str,
        role: Role,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> UserSession:
        """Stamp login/activity times and store a new session.

        Replaces any session the user already had.
        """
        now = self._now()
        session = UserSession(
            user_id=user_id,
            username=username,
            role=role,
            login_time=now,
            last_activity=now,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        stored = self._cache.set_user_session(user_id, session)
        logger.info("session.created", extra={"user_id": user_id, "stored": stored})
        return session

    def get(self, user_id: int) -> UserSession | None:
        return self._cache.get_user_session(user_id)

    def touch(self, user_id: int) -> UserSession | None:
        """Rewrite ``last_activity`` and re-store the session.

        Returns:
            The refreshed session, or None when the user has no session.
        """
        session = self.get(user_id)
        if session is None:
            return None
        session.last_activity = self._now()
        self._cache.set_user_session(user_id, session)
        return session

    def is_valid(self, user_id: int, max_inactive_minutes: int = 60) -> bool:
        """Check that a session exists and was active recently enough.

        Does not delete an expired session; callers decide what to do.
        """
        session = self.get(user_id)
        if session is None:
            return False
        inactive_minutes = (self._now() - session.last_activity).total_seconds() / 60
        return inactive_minutes <= max_inactive_minutes

    def delete(self, user_id: int) -> bool:
        removed = self._cache.delete_user_session(user_id)
        logger.info("session.deleted", extra={"user_id": user_id, "removed": removed})
        return removed > 0
