"""Session-based caller identification.

The upstream web layer identifies the caller with an ``X-User-Id`` header. The
id is only trusted when a live session exists for it: the session record, not
the header, supplies username and role.

Design principles:
- Dependency Injection: used via FastAPI Depends() so routes stay declarative
- Sliding activity: every accepted request refreshes the session
- Admin checks happen before any store mutation is attempted
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Header, Request

from app.core.config import settings
from app.core.container import ServiceContainer, get_container
from app.core.errors import AuthenticationAppError, ForbiddenAppError
from app.schemas.user import Role

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CurrentUser:
    id: int
    username: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def parse_user_id(raw: str | None) -> int | None:
    """Parse the user id header value.

    Examples:
        >>> parse_user_id("42")
        42
        >>> parse_user_id(" 7 ")
        7
        >>> parse_user_id("abc") is None
        True
        >>> parse_user_id(None) is None
        True
    """
    if raw is None:
        return None
    raw = raw.strip()
    if not raw.isdigit():
        return None
    return int(raw)


def authenticate(container: ServiceContainer, user_id: int | None) -> CurrentUser:
    """Resolve a caller from their session, refreshing its activity time.

    Raises:
        AuthenticationAppError: If no id was given or the session is missing
            or inactive for longer than allowed.
    """
    if user_id is None:
        raise AuthenticationAppError(
            code="not_authenticated",
            message="Missing or invalid X-User-Id header",
        )

    max_inactive = settings.app.session_max_inactive_minutes
    if not container.sessions.is_valid(user_id, max_inactive):
        logger.info("auth.session_rejected", extra={"user_id": user_id})
        raise AuthenticationAppError(
            code="session_expired",
            message="Session expired or not found. Please log in again.",
        )

    session = container.sessions.touch(user_id)
    if session is None:
        # Session vanished between the validity check and the refresh.
        raise AuthenticationAppError(
            code="session_expired",
            message="Session expired or not found. Please log in again.",
        )
    return CurrentUser(id=session.user_id, username=session.username, role=session.role)


def get_current_user(
    request: Request,
    container: Annotated[ServiceContainer, Depends(get_container)],
    x_user_id: Annotated[str | None, Header(alias="X-User-Id")] = None,
) -> CurrentUser:
    """FastAPI dependency requiring an authenticated caller.

    Stores the caller on ``request.state.user`` so the rate limiter can key on
    identity rather than network address.
    """
    user = authenticate(container, parse_user_id(x_user_id))
    request.state.user = user
    return user


def require_admin(
    user: Annotated[CurrentUser, Depends(get_current_user)],
) -> CurrentUser:
    """FastAPI dependency requiring an authenticated admin.

    Raises:
        ForbiddenAppError: If the caller is not an admin.
    """
    if not user.is_admin:
        logger.warning("auth.admin_required", extra={"user_id": user.id})
        raise ForbiddenAppError(code="admin_required", message="Admin privileges required")
    return user
