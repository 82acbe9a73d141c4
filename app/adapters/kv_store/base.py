"""Key-value store interface.

Every operation is a single independent round trip against a store shared by
all workers. Implementations raise StoreUnavailableError when the store cannot
be reached; deciding whether that is fatal is left to the caller.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class AbstractKeyValueStore(ABC):
    """Interface for the shared key-value store."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the value stored at key, or None when absent/expired."""
        raise NotImplementedError

    @abstractmethod
    def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        """Store value at key, replacing any previous value and TTL.

        Args:
            key: Store key.
            value: Serialized value.
            ttl_seconds: Optional time-to-live; None keeps the key until deleted.
        """
        raise NotImplementedError

    @abstractmethod
    def delete(self, *keys: str) -> int:
        """Delete keys and return how many existed. Absent keys count as 0."""
        raise NotImplementedError

    @abstractmethod
    def exists(self, key: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def increment(self, key: str) -> int:
        """Atomically increment the integer at key, creating it at 1 if absent."""
        raise NotImplementedError

    @abstractmethod
    def expire(self, key: str, ttl_seconds: int) -> bool:
        """Set a TTL on an existing key. Returns False when the key is absent."""
        raise NotImplementedError

    @abstractmethod
    def keys_matching(self, pattern: str) -> list[str]:
        """Return keys matching a glob pattern.

        Cost grows with the size of the keyspace. Only operational tooling and
        rare administrative paths may call this.
        """
        raise NotImplementedError

    @abstractmethod
    def hash_set(self, key: str, field: str, value: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def hash_get(self, key: str, field: str) -> str | None:
        raise NotImplementedError

    @abstractmethod
    def flush_all(self) -> None:
        """Remove every key in the store."""
        raise NotImplementedError

    @abstractmethod
    def ping(self) -> bool:
        raise NotImplementedError

    @abstractmethod
    def info(self) -> dict[str, Any]:
        """Return server statistics grouped by section."""
        raise NotImplementedError

    @abstractmethod
    def db_size(self) -> int:
        raise NotImplementedError

    def close(self) -> None:
        """Release connections held by the store (no-op by default)."""
