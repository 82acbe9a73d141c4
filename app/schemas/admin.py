"""Pydantic schemas for admin aggregates and store operations."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from app.schemas.todo import TodoRead
from app.schemas.user import UserRead


class AdminUserDetail(UserRead):
    todos: list[TodoRead] = Field(default_factory=list)


class SystemStats(BaseModel):
    total_users: int = Field(..., ge=0)
    total_todos: int = Field(..., ge=0)
    admin_users: int = Field(..., ge=0)
    regular_users: int = Field(..., ge=0)
    completed_todos: int = Field(..., ge=0)
    pending_todos: int = Field(
        ...,
        ge=0,
        description="Todos not yet completed (pending and in progress).",
    )


class StoreInfo(BaseModel):
    info: dict[str, Any] = Field(default_factory=dict)
    db_size: int
    cache_stats: dict[str, int] = Field(
        default_factory=dict,
        description="Hit/miss/error counters of this worker's cache service.",
    )
    timestamp: datetime


class KeyListing(BaseModel):
    pattern: str
    count: int = Field(..., description="Total keys matching the pattern.")
    keys: list[str] = Field(..., description="First N matching keys (N from config).")


class MessageResponse(BaseModel):
    message: str
    removed: int | None = None


class ServiceCheck(BaseModel):
    status: Literal["healthy", "unhealthy"]
    message: str


class HealthReport(BaseModel):
    status: Literal["healthy", "unhealthy"]
    timestamp: datetime
    services: dict[str, ServiceCheck]
