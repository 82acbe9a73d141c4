"""In-memory key-value store.

Notes:
- Per-process only: counters and cache entries are not shared across workers.
- Thread-safe: uses a lock around shared state.
- Expiry is lazy: an expired key is dropped the next time it is touched.
- Type mismatches raise StoreUnavailableError, as the Redis adapter does.
"""

from __future__ import annotations

import fnmatch
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

from app.adapters.kv_store.base import AbstractKeyValueStore
from app.core.errors import StoreUnavailableError


@dataclass
class _Entry:
    value: str | dict[str, str]
    expires_at: float | None = None



def _wrong_type(operation: str, key: str, reason: str) -> StoreUnavailableError:
    # Redis answers WRONGTYPE / "not an integer" with a ResponseError, which the
    # Redis adapter surfaces as StoreUnavailableError; mirror that here.
    return StoreUnavailableError(
        code="store_wrong_type",
        message=f"Key {key!r} {reason}",
        details={"operation": operation},
    )


class InMemoryKeyValueStore(AbstractKeyValueStore):
    """Dict-backed store with the same semantics as the Redis adapter.

    Used by the test suite and for single-process deployments
    (``STORE_BACKEND=memory``). The clock is injectable so TTL expiry can be
    simulated without sleeping.
    """

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        """Initialize an empty store.

        Args:
            clock: Time source function returning UNIX time in seconds.
        """
        self._clock = clock
        self._lock = threading.RLock()
        self._entries: dict[str, _Entry] = {}

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return f"InMemoryKeyValueStore(size={len(self._entries)})"

    def _live_entry_locked(self, key: str) -> _Entry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at is not None and entry.expires_at <= self._clock():
            del self._entries[key]
            return None
        return entry

    def _purge_expired_locked(self) -> None:
        now = self._clock()
        expired = [
            k for k, e in self._entries.items() if e.expires_at is not None and e.expires_at <= now
        ]
        for key in expired:
            del self._entries[key]

    def get(self, key: str) -> str | None:
        with self._lock:
            entry = self._live_entry_locked(key)
            if entry is None:
                return None
            if not isinstance(entry.value, str):
                raise _wrong_type("get", key, "holds a hash, not a string")
            return entry.value

    def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        if ttl_seconds is not None and ttl_seconds < 1:
            raise ValueError("ttl_seconds must be >= 1")

        with self._lock:
            expires_at = self._clock() + ttl_seconds if ttl_seconds else None
            self._entries[key] = _Entry(value=value, expires_at=expires_at)

    def delete(self, *keys: str) -> int:
        removed = 0
        with self._lock:
            for key in keys:
                if self._live_entry_locked(key) is not None:
                    del self._entries[key]
                    removed += 1
        return removed

    def exists(self, key: str) -> bool:
        with self._lock:
            return self._live_entry_locked(key) is not None

    def increment(self, key: str) -> int:
        with self._lock:
            entry = self._live_entry_locked(key)
            if entry is None:
                self._entries[key] = _Entry(value="1")
                return 1
            if not isinstance(entry.value, str) or not entry.value.lstrip("-").isdigit():
                raise _wrong_type("increment", key, "is not an integer")
            new_value = int(entry.value) + 1
            # INCR keeps the existing TTL
            entry.value = str(new_value)
            return new_value

    def expire(self, key: str, ttl_seconds: int) -> bool:
        with self._lock:
            entry = self._live_entry_locked(key)
            if entry is None:
                return False
            entry.expires_at = self._clock() + ttl_seconds
            return True

    def ttl(self, key: str) -> float | None:
        """Return remaining seconds to live, or None when absent or persistent."""
        with self._lock:
            entry = self._live_entry_locked(key)
            if entry is None or entry.expires_at is None:
                return None
            return entry.expires_at - self._clock()

    def keys_matching(self, pattern: str) -> list[str]:
        with self._lock:
            self._purge_expired_locked()
            return sorted(k for k in self._entries if fnmatch.fnmatchcase(k, pattern))

    def hash_set(self, key: str, field: str, value: str) -> None:
        with self._lock:
            entry = self._live_entry_locked(key)
            if entry is None:
                self._entries[key] = _Entry(value={field: value})
                return
            if not isinstance(entry.value, dict):
                raise _wrong_type("hash_set", key, "holds a string, not a hash")
            entry.value[field] = value

    def hash_get(self, key: str, field: str) -> str | None:
        with self._lock:
            entry = self._live_entry_locked(key)
            if entry is None:
                return None
            if not isinstance(entry.value, dict):
                raise _wrong_type("hash_get", key, "holds a string, not a hash")
            return entry.value.get(field)

    def flush_all(self) -> None:
        with self._lock:
            self._entries.clear()

    def ping(self) -> bool:
        return True

    def info(self) -> dict[str, Any]:
        with self._lock:
            self._purge_expired_locked()
            expiring = sum(1 for e in self._entries.values() if e.expires_at is not None)
            return {
                "server": {"backend": "in_memory"},
                "keyspace": {"keys": len(self._entries), "expires": expiring},
            }

    def db_size(self) -> int:
        with self._lock:
            self._purge_expired_locked()
            return len(self._entries)
