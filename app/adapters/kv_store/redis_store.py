"""Redis-backed key-value store.

Thin synchronous wrapper over redis-py. Each method is one round trip (INFO
gathering excepted) and every redis-py failure is translated into
StoreUnavailableError so callers never depend on the driver's exception types.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator

import redis
from redis.exceptions import RedisError

from app.adapters.kv_store.base import AbstractKeyValueStore
from app.core.errors import StoreUnavailableError

logger = logging.getLogger(__name__)

# SCAN count hint; bounds the work done per cursor step
SCAN_COUNT = 500

INFO_SECTIONS = ("server", "clients", "memory", "stats", "keyspace")


@contextmanager
def _translate_errors(operation: str, key: str | None = None) -> Iterator[None]:
    try:
        yield
    except RedisError as exc:
        logger.warning(
            "store.unavailable",
            extra={
                "operation": operation,
                "cache_key": key,
                "error_type": type(exc).__name__,
            },
        )
        raise StoreUnavailableError(
            code="store_unavailable",
            message=f"Key-value store unavailable during {operation}",
            details={"operation": operation},
        ) from exc


class RedisKeyValueStore(AbstractKeyValueStore):
    """Key-value store backed by a shared Redis server."""

    def __init__(self, client: redis.Redis) -> None:
        """Wrap an existing redis-py client.

        The client must be created with ``decode_responses=True`` so values come
        back as ``str``.
        """
        self._client = client

    @classmethod
    def from_url(
        cls,
        url: str,
        *,
        socket_timeout: float = 5.0,
        socket_connect_timeout: float = 5.0,
    ) -> "RedisKeyValueStore":
        """Build a store from a Redis URL with bounded socket timeouts."""
        client = redis.Redis.from_url(
            url,
            encoding="utf-8",
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_connect_timeout,
            retry_on_timeout=True,
        )
        return cls(client)

    def get(self, key: str) -> str | None:
        with _translate_errors("get", key):
            return self._client.get(key)

    def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        with _translate_errors("set", key):
            if ttl_seconds:
                self._client.set(key, value, ex=ttl_seconds)
            else:
                self._client.set(key, value)

    def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        with _translate_errors("delete", keys[0]):
            return int(self._client.delete(*keys))

    def exists(self, key: str) -> bool:
        with _translate_errors("exists", key):
            return self._client.exists(key) == 1

    def increment(self, key: str) -> int:
        with _translate_errors("increment", key):
            return int(self._client.incr(key))

    def expire(self, key: str, ttl_seconds: int) -> bool:
        with _translate_errors("expire", key):
            return bool(self._client.expire(key, ttl_seconds))

    def keys_matching(self, pattern: str) -> list[str]:
        with _translate_errors("keys_matching", pattern):
            return list(self._client.scan_iter(match=pattern, count=SCAN_COUNT))

    def hash_set(self, key: str, field: str, value: str) -> None:
        with _translate_errors("hash_set", key):
            self._client.hset(key, field, value)

    def hash_get(self, key: str, field: str) -> str | None:
        with _translate_errors("hash_get", key):
            return self._client.hget(key, field)

    def flush_all(self) -> None:
        with _translate_errors("flush_all"):
            self._client.flushall()

    def ping(self) -> bool:
        with _translate_errors("ping"):
            return bool(self._client.ping())

    def info(self) -> dict[str, Any]:
        with _translate_errors("info"):
            return {section: self._client.info(section) for section in INFO_SECTIONS}

    def db_size(self) -> int:
        with _translate_errors("db_size"):
            return int(self._client.dbsize())

    def close(self) -> None:
        with _translate_errors("close"):
            self._client.close()
