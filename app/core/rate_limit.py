"""Rate limiting dependency for FastAPI routes.

This module wires the rate limiting adapter into the HTTP layer.

Design goals:
- Minimal coupling: routes declare ``Depends(rate_limit(POLICY))`` only.
- Identity first: authenticated callers are limited as ``user:{id}`` so users
  behind a shared egress address do not throttle each other; anonymous
  callers fall back to ``ip:{address}``.
- Fail-open: a store outage admits requests (see StoreFixedWindowRateLimiter).

Declare the rate limit dependency after the authentication dependency so the
caller identity is already resolved.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Annotated, Callable

from fastapi import Depends, HTTPException, Request, Response, status

from app.adapters.rate_limit.base import RateLimitPolicy, RateLimitResult
from app.core.config import settings
from app.core.container import ServiceContainer, get_container
from app.core.logging import hash_identifier

logger = logging.getLogger(__name__)


def build_client_key(request: Request) -> str:
    """Build the limiter key for the current request.

    Args:
        request: FastAPI request, possibly carrying ``state.user``.

    Returns:
        str: Namespaced client key.
    """
    user = getattr(request.state, "user", None)
    if user is not None:
        return f"user:{user.id}"

    client_host = request.client.host if request.client else "unknown"
    return f"ip:{client_host}"


def _rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    return {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(result.reset_at_ms // 1000),
    }


def rate_limit(policy: RateLimitPolicy) -> Callable[..., None]:
    """Create a FastAPI dependency enforcing policy.

    Args:
        policy: Window and budget to enforce for the route.

    Returns:
        Dependency callable consuming one unit per request.
    """

    def enforce_rate_limit(
        request: Request,
        response: Response,
        container: Annotated[ServiceContainer, Depends(get_container)],
    ) -> None:
        """Consume one request from the caller's budget.

        Raises:
            HTTPException: 429 Too Many Requests when the window is exhausted.
        """
        if not settings.app.rate_limit_enabled:
            return

        client_key = build_client_key(request)
        result = container.rate_limiter.check(client_key, policy)
        headers = _rate_limit_headers(result) if settings.app.rate_limit_include_headers else {}

        if not result.limited:
            response.headers.update(headers)
            logger.debug(
                "rate_limit.allowed",
                extra={
                    "policy": policy.name,
                    "key_hash": hash_identifier(client_key),
                    "remaining": result.remaining,
                    "degraded": result.degraded,
                },
            )
            return

        retry_after = result.retry_after_seconds or 0
        logger.warning(
            "rate_limit.exceeded",
            extra={
                "policy": policy.name,
                "key_hash": hash_identifier(client_key),
                "limit": result.limit,
                "window_ms": policy.window_ms,
                "retry_after_s": retry_after,
            },
        )

        if settings.app.rate_limit_include_headers:
            headers["Retry-After"] = str(retry_after)

        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "message": "Too many requests",
                "limit": result.limit,
                "remaining": result.remaining,
                "reset_at": datetime.fromtimestamp(
                    result.reset_at_ms / 1000, tz=timezone.utc
                ).isoformat(),
                "retry_after": retry_after,
            },
            headers=headers or None,
        )

    return enforce_rate_limit
