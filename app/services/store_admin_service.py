"""Operational view over the shared store.

Introspection and blunt maintenance actions for administrators. Nothing here
runs on the steady-state request path; pattern scans are acceptable only
because of that. Unlike the request path, failures propagate as
StoreUnavailableError so the operator sees them.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Callable, Literal

from app.adapters.kv_store.base import AbstractKeyValueStore
from app.adapters.rate_limit.base import AbstractRateLimiter
from app.core.errors import ValidationAppError
from app.schemas.admin import KeyListing, StoreInfo
from app.services.cache_service import CacheKeys, CacheService

logger = logging.getLogger(__name__)

Namespace = Literal["todos", "users", "stats"]

NAMESPACE_KEYS: dict[str, str] = {
    "todos": CacheKeys.ALL_TODOS,
    "users": CacheKeys.ALL_USERS,
    "stats": CacheKeys.SYSTEM_STATS,
}


class StoreAdminService:
    """Admin-only inspection and maintenance of the key-value store.

    Reads (info, key listing) go straight to the store. Evictions go through
    the cache service so there is one implementation of each invalidation,
    called here with ``raise_errors=True``.
    """

    def __init__(
        self,
        store: AbstractKeyValueStore,
        cache: CacheService,
        rate_limiter: AbstractRateLimiter,
        *,
        key_limit: int = 100,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the view.

        Args:
            store: Store to introspect.
            cache: Cache service performing evictions.
            rate_limiter: Limiter whose counters can be reset.
            key_limit: Maximum number of keys returned by list_keys.
            clock: Time source function returning UNIX time in seconds.
        """
        self._store = store
        self._cache = cache
        self._rate_limiter = rate_limiter
        self._key_limit = key_limit
        self._clock = clock

    def info(self) -> StoreInfo:
        """Return server info sections, key count and cache counters.

        Raises:
            StoreUnavailableError: If the store cannot be reached.
        """
        return StoreInfo(
            info=self._store.info(),
            db_size=self._store.db_size(),
            cache_stats=self._cache.stats(),
            timestamp=datetime.fromtimestamp(self._clock(), tz=timezone.utc),
        )

    def list_keys(self, pattern: str = "*") -> KeyListing:
        """List keys matching a glob.

        Args:
            pattern: Glob such as ``user:*``; empty means every key.

        Returns:
            KeyListing with the full match count and the first key_limit keys,
            sorted.
        """
        pattern = pattern or "*"
        keys = sorted(self._store.keys_matching(pattern))
        return KeyListing(pattern=pattern, count=len(keys), keys=keys[: self._key_limit])

    def flush_all(self) -> None:
        """Drop every key, sessions and rate-limit counters included."""
        self._cache.invalidate_all(raise_errors=True)

    def clear_user(self, user_id: int) -> int:
        """Remove every cached key of one user. Sessions are left alone.

        Returns:
            Number of keys removed.
        """
        removed = self._cache.invalidate_user_cache(user_id, raise_errors=True)
        logger.info("store_admin.cleared_user", extra={"user_id": user_id, "removed": removed})
        return removed

    def clear_namespace(self, namespace: Namespace | str) -> int:
        """Drop one admin aggregate key.

        Args:
            namespace: ``todos``, ``users`` or ``stats``.

        Returns:
            1 when the key existed, else 0.

        Raises:
            ValidationAppError: If the namespace is unknown.
        """
        key = NAMESPACE_KEYS.get(namespace)
        if key is None:
            raise ValidationAppError(
                code="unknown_namespace",
                message=f"Unknown cache namespace: '{namespace}'",
                details={"hint": f"Use one of: {', '.join(sorted(NAMESPACE_KEYS))}"},
            )
        removed = self._store.delete(key)
        logger.info("store_admin.cleared_namespace", extra={"namespace": namespace, "removed": removed})
        return removed

    def reset_rate_limit(self, client_key: str) -> int:
        """Delete every window counter of a client key such as ``user:42``."""
        return self._rate_limiter.reset(client_key)
