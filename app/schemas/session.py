"""Pydantic schema for the per-user session record."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from app.schemas.user import Role


class UserSession(BaseModel):
    """Session stored under ``session:{user_id}``.

    ``last_activity`` is rewritten on every authenticated request; the store
    TTL is the hard expiry backstop.
    """

    user_id: int
    username: str
    role: Role
    login_time: datetime
    last_activity: datetime
    ip_address: str | None = None
    user_agent: str | None = None
