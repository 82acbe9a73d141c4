"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep backward compatibility while encouraging
    consistent shapes across the codebase.
    """

    code: str
    message: str
    hint: str
    resource: str
    resource_id: int
    operation: str
    cache_key: str
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class AuthenticationAppError(AppError):
    """Raised when the caller has no valid session."""


class ForbiddenAppError(AppError):
    """Raised when a caller touches another user's data without admin rights."""


class NotFoundAppError(AppError):
    """Raised when a referenced user or todo does not exist."""


class ConflictAppError(AppError):
    """Raised on email/username uniqueness violations."""


class StoreUnavailableError(AppError):
    """Raised by key-value store adapters when the store cannot be reached.

    Cache reads treat it as a miss, invalidation and rate limiting log it and
    continue. Only operational tooling lets it reach the client.
    """


class MalformedCacheEntryError(AppError):
    """Raised internally when a cached payload cannot be decoded."""
