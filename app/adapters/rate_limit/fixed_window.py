"""Fixed-window rate limiter over the shared key-value store.

Notes:
- Shared: every worker increments the same counter, so limits hold across
  processes and hosts.
- Approximate: concurrent bursts at a window boundary can admit slightly more
  than max_requests in a short span. This is the accepted cost of a fixed
  window and is not corrected here.
- Fail-open: when the store is unavailable, requests are admitted and the
  degradation is logged.
"""

from __future__ import annotations

import logging
import math
import time
from typing import Callable

from app.adapters.kv_store.base import AbstractKeyValueStore
from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitPolicy, RateLimitResult
from app.core.errors import StoreUnavailableError
from app.core.logging import hash_identifier

logger = logging.getLogger(__name__)

KEY_PREFIX = "rate_limit"


def window_key(client_key: str, window_start_ms: int) -> str:
    """Build the counter key for one client window."""
    return f"{KEY_PREFIX}:{client_key}:{window_start_ms}"


class StoreFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter counting requests per fixed window in the shared store.

    The counter key embeds the window start, so a new window naturally starts
    from zero and old counters expire on their own.
    """

    def __init__(
        self,
        store: AbstractKeyValueStore,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the limiter.

        Args:
            store: Shared key-value store holding the counters.
            clock: Time source function returning UNIX time in seconds.
        """
        self._store = store
        self._clock = clock

    @staticmethod
    def _get_window_bounds(now_ms: int, window_ms: int) -> tuple[int, int]:
        """Compute fixed-window boundaries (epoch ms) for a timestamp."""
        window_start = (now_ms // window_ms) * window_ms
        return window_start, window_start + window_ms

    def _build_degraded_result(self, policy: RateLimitPolicy, reset_at_ms: int) -> RateLimitResult:
        return RateLimitResult(
            limited=False,
            limit=policy.max_requests,
            remaining=policy.max_requests,
            reset_at_ms=reset_at_ms,
            degraded=True,
        )

    def check(self, client_key: str, policy: RateLimitPolicy) -> RateLimitResult:
        """Increment the client's counter for the current window and decide.

        Only the caller that observes the transition to 1 arms the TTL, so the
        increment and the conditional expire run back to back on one key.

        Raises:
            ValueError: If client_key is empty.
        """
        if not client_key:
            raise ValueError("client_key must be a non-empty string")

        now_ms = int(self._clock() * 1000)
        window_start, reset_at_ms = self._get_window_bounds(now_ms, policy.window_ms)
        key = window_key(client_key, window_start)

        try:
            count = self._store.increment(key)
            if count == 1:
                self._store.expire(key, math.ceil(policy.window_ms / 1000))
        except StoreUnavailableError:
            logger.warning(
                "rate_limit.degraded",
                extra={
                    "policy": policy.name,
                    "key_hash": hash_identifier(client_key),
                    "decision": "admit",
                },
            )
            return self._build_degraded_result(policy, reset_at_ms)

        remaining = max(0, policy.max_requests - count)
        limited = count > policy.max_requests
        retry_after = None
        if limited:
            retry_after = max(0, math.ceil((reset_at_ms - now_ms) / 1000))

        return RateLimitResult(
            limited=limited,
            limit=policy.max_requests,
            remaining=remaining,
            reset_at_ms=reset_at_ms,
            retry_after_seconds=retry_after,
        )

    def reset(self, client_key: str) -> int:
        """Delete all window counters for a client.

        Scans the keyspace; administrative use only. Store failures propagate.
        """
        keys = self._store.keys_matching(f"{KEY_PREFIX}:{client_key}:*")
        if not keys:
            return 0
        removed = self._store.delete(*keys)
        logger.info(
            "rate_limit.reset",
            extra={"key_hash": hash_identifier(client_key), "removed": removed},
        )
        return removed
