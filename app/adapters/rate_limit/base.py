"""Rate limiter interfaces and predefined policies.

The API depends on this abstraction (not the concrete implementation) so the
counting strategy can change (e.g., to a sliding window) without touching the
HTTP layer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitPolicy:
    """Request budget for one endpoint class.

    Attributes:
        name: Short label used in logs.
        window_ms: Fixed window size in milliseconds.
        max_requests: Requests admitted per client per window.
    """

    name: str
    window_ms: int
    max_requests: int

    def __post_init__(self) -> None:
        if self.window_ms < 1:
            raise ValueError("window_ms must be >= 1")
        if self.max_requests < 1:
            raise ValueError("max_requests must be >= 1")


AUTH_RATE_LIMIT = RateLimitPolicy(name="auth", window_ms=15 * 60 * 1000, max_requests=5)
API_RATE_LIMIT = RateLimitPolicy(name="api", window_ms=60 * 1000, max_requests=100)
ADMIN_RATE_LIMIT = RateLimitPolicy(name="admin", window_ms=60 * 1000, max_requests=200)


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit check.

    Attributes:
        limited: Whether the request must be rejected.
        limit: Max requests per window.
        remaining: Remaining requests in the current window, never negative.
        reset_at_ms: UNIX epoch milliseconds when the current window ends.
        retry_after_seconds: Suggested wait time in seconds when limited.
        degraded: True when the store was unavailable and the request was
            admitted without counting.
    """

    limited: bool
    limit: int
    remaining: int
    reset_at_ms: int
    retry_after_seconds: int | None = None
    degraded: bool = False

    @property
    def allowed(self) -> bool:
        return not self.limited


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def check(self, client_key: str, policy: RateLimitPolicy) -> RateLimitResult:
        """Count one request for client_key under policy.

        Args:
            client_key: Client identity, e.g. ``user:7`` or ``ip:10.0.0.1``.
            policy: Window size and budget to enforce.

        Returns:
            RateLimitResult describing whether the request is limited.
        """
        raise NotImplementedError

    @abstractmethod
    def reset(self, client_key: str) -> int:
        """Drop every window counter for client_key. Returns keys removed."""
        raise NotImplementedError
