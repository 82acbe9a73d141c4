"""Pydantic schemas for todo payloads."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.schemas.user import UserSummary


class TodoStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class TodoCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: str | None = None
    status: TodoStatus = TodoStatus.PENDING
    deadline: datetime | None = None


class TodoUpdate(BaseModel):
    """Partial update; only fields explicitly sent are applied."""

    title: str | None = Field(None, min_length=1)
    description: str | None = None
    status: TodoStatus | None = None
    deadline: datetime | None = None

    @field_validator("title", "status")
    @classmethod
    def _reject_null(cls, value):
        # Omit the field to keep it; null would clear a required column.
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class TodoRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str | None = None
    status: TodoStatus
    deadline: datetime | None = None
    user_id: int
    owner: UserSummary
    created_at: datetime
    updated_at: datetime
