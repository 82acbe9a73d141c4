"""Pydantic schemas for users, profiles and authentication payloads."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class UserSummary(BaseModel):
    """Owner summary embedded in todo payloads."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str


class UserRead(BaseModel):
    """Public user profile. Never carries credentials."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    username: str
    first_name: str | None = None
    last_name: str | None = None
    role: Role = Role.USER
    created_at: datetime
    updated_at: datetime


class AdminUserRead(UserRead):
    """User row in the admin listing, with the number of owned todos."""

    todo_count: int = Field(0, ge=0)


class ProfileUpdate(BaseModel):
    """Fields a user may change on their own profile."""

    email: str | None = Field(None, min_length=3, description="New email address.")
    username: str | None = Field(None, min_length=3, description="New username.")
    first_name: str | None = None
    last_name: str | None = None


class UserUpdate(ProfileUpdate):
    """Admin update; may also change the role."""

    role: Role | None = None


class RegisterRequest(BaseModel):
    email: str = Field(..., min_length=3)
    username: str = Field(..., min_length=3)
    password: str = Field(..., min_length=6)
    first_name: str | None = None
    last_name: str | None = None


class LoginRequest(BaseModel):
    identifier: str = Field(..., min_length=1, description="Email or username.")
    password: str = Field(..., min_length=1)
