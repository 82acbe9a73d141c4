"""Rate limiting adapters.

This package provides a small abstraction layer over the counting strategy.
The shipped implementation keeps fixed-window counters in the shared
key-value store so limits hold across all workers.
"""

from app.adapters.rate_limit.base import (
    ADMIN_RATE_LIMIT,
    API_RATE_LIMIT,
    AUTH_RATE_LIMIT,
    AbstractRateLimiter,
    RateLimitPolicy,
    RateLimitResult,
)
from app.adapters.rate_limit.fixed_window import StoreFixedWindowRateLimiter

__all__ = [
    "ADMIN_RATE_LIMIT",
    "API_RATE_LIMIT",
    "AUTH_RATE_LIMIT",
    "AbstractRateLimiter",
    "RateLimitPolicy",
    "RateLimitResult",
    "StoreFixedWindowRateLimiter",
]
