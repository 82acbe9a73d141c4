"""Read-through cache over the shared key-value store.

This service owns the cache key taxonomy and the invalidation rules. It handles:
- Typed get/set with pydantic serialization (corrupt payloads read as misses)
- Per-namespace TTL defaults
- Declarative invalidation: each mutation kind maps to the keys it affects
- Session records stored as a hash field under ``session:{user_id}``

Store failures never reach the caller: reads degrade to misses and writes or
invalidations are logged and skipped, so business operations keep working on
the system of record alone. Operational callers may opt in to the
error with ``raise_errors=True``.
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from functools import lru_cache
from typing import Any, TypeVar

from pydantic import TypeAdapter, ValidationError

from app.adapters.kv_store.base import AbstractKeyValueStore
from app.core.config import CacheSettings
from app.core.errors import MalformedCacheEntryError, StoreUnavailableError
from app.schemas.admin import SystemStats
from app.schemas.session import UserSession
from app.schemas.todo import TodoRead
from app.schemas.user import AdminUserRead, UserRead

logger = logging.getLogger(__name__)

T = TypeVar("T")

SESSION_FIELD = "data"


class CacheKeys:
    """Cache key taxonomy. The namespace prefix decides invalidation scope."""

    ALL_USERS = "admin:all-users"
    ALL_TODOS = "admin:all-todos"
    SYSTEM_STATS = "admin:system-stats"

    @staticmethod
    def user_todos(user_id: int) -> str:
        return f"user:{user_id}:todos"

    @staticmethod
    def user_profile(user_id: int) -> str:
        return f"user:{user_id}:profile"

    @staticmethod
    def user_namespace(user_id: int) -> str:
        """Glob matching every per-user key, including ones added later."""
        return f"user:{user_id}:*"

    @staticmethod
    def session(user_id: int) -> str:
        return f"session:{user_id}"


class Mutation(str, Enum):
    TODO_CREATED = "todo_created"
    TODO_UPDATED = "todo_updated"
    TODO_DELETED = "todo_deleted"
    USER_CREATED = "user_created"
    USER_UPDATED = "user_updated"
    USER_DELETED = "user_deleted"


_TODO_KEYS = ("user:{user_id}:todos", CacheKeys.ALL_TODOS, CacheKeys.SYSTEM_STATS)

# Templates ending in "*" are namespace globs resolved with a key scan.
INVALIDATION_RULES: dict[Mutation, tuple[str, ...]] = {
    Mutation.TODO_CREATED: _TODO_KEYS,
    Mutation.TODO_UPDATED: _TODO_KEYS,
    Mutation.TODO_DELETED: _TODO_KEYS,
    Mutation.USER_CREATED: (CacheKeys.ALL_USERS, CacheKeys.SYSTEM_STATS),
    # Todo payloads embed the owner's username/email, so todo lists go too.
    Mutation.USER_UPDATED: (
        "user:{user_id}:profile",
        "user:{user_id}:todos",
        CacheKeys.ALL_USERS,
        CacheKeys.ALL_TODOS,
        CacheKeys.SYSTEM_STATS,
    ),
    Mutation.USER_DELETED: (
        "user:{user_id}:*",
        CacheKeys.ALL_USERS,
        CacheKeys.ALL_TODOS,
        CacheKeys.SYSTEM_STATS,
    ),
}


@lru_cache(maxsize=None)
def _adapter_for(type_: Any) -> TypeAdapter[Any]:
    return TypeAdapter(type_)


def _encode(value: Any, type_: Any) -> str:
    return _adapter_for(type_).dump_json(value).decode()


def _decode(raw: str, type_: Any) -> Any:
    try:
        return _adapter_for(type_).validate_json(raw)
    except ValidationError as exc:
        raise MalformedCacheEntryError(
            code="cache_entry_malformed",
            message="Cached payload could not be decoded",
        ) from exc


class CacheService:
    """Typed read-through cache with centralized invalidation rules."""

    def __init__(
        self,
        store: AbstractKeyValueStore,
        ttls: CacheSettings | None = None,
    ) -> None:
        self._store = store
        self._ttls = ttls or CacheSettings()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._errors = 0

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return f"CacheService(hits={self._hits}, misses={self._misses}, errors={self._errors})"

    @property
    def ttls(self) -> CacheSettings:
        return self._ttls

    def _count(self, *, hit: bool = False, miss: bool = False, error: bool = False) -> None:
        with self._lock:
            self._hits += hit
            self._misses += miss
            self._errors += error

    def stats(self) -> dict[str, int]:
        """Return hit/miss/error counters for this process."""
        with self._lock:
            return {"hits": self._hits, "misses": self._misses, "errors": self._errors}

    # Generic operations

    def get(self, key: str, type_: type[T] | Any) -> T | None:
        """Return the cached value decoded as type_, or None on any miss.

        A missing key, an unreachable store and a corrupt payload all read as
        a miss; the caller recomputes from the system of record.
        """
        try:
            raw = self._store.get(key)
        except StoreUnavailableError:
            self._count(miss=True, error=True)
            logger.warning("cache.miss", extra={"cache_key": key, "reason": "store_unavailable"})
            return None

        if raw is None:
            self._count(miss=True)
            logger.debug("cache.miss", extra={"cache_key": key, "reason": "not_found"})
            return None

        try:
            value = _decode(raw, type_)
        except MalformedCacheEntryError:
            self._count(miss=True, error=True)
            logger.warning("cache.miss", extra={"cache_key": key, "reason": "malformed"})
            return None

        self._count(hit=True)
        logger.debug("cache.hit", extra={"cache_key": key})
        return value

    def set(self, key: str, value: Any, type_: type[T] | Any, ttl: int | None = None) -> bool:
        """Serialize value as type_ and store it with ttl seconds.

        Returns:
            True when stored, False when the store was unavailable.
        """
        payload = _encode(value, type_)
        try:
            self._store.set(key, payload, ttl)
        except StoreUnavailableError:
            self._count(error=True)
            logger.warning("cache.set_failed", extra={"cache_key": key})
            return False

        logger.debug("cache.set", extra={"cache_key": key, "ttl_s": ttl})
        return True

    def delete(self, key: str) -> int:
        """Delete one key. Deleting an absent key is a successful no-op (0)."""
        try:
            return self._store.delete(key)
        except StoreUnavailableError:
            self._count(error=True)
            logger.warning("cache.invalidate_failed", extra={"cache_key": key})
            return 0

    def exists(self, key: str) -> bool:
        try:
            return self._store.exists(key)
        except StoreUnavailableError:
            self._count(error=True)
            return False

    # Invalidation

    def _delete_pattern(self, pattern: str, *, raise_errors: bool = False) -> int:
        try:
            keys = self._store.keys_matching(pattern)
            return self._store.delete(*keys) if keys else 0
        except StoreUnavailableError:
            self._count(error=True)
            logger.warning("cache.invalidate_failed", extra={"cache_key": pattern})
            if raise_errors:
                raise
            return 0

    def invalidate(self, mutation: Mutation, *, user_id: int | None = None) -> int:
        """Evict every key affected by a mutation.

        Must run after the system-of-record write succeeded and before the
        mutating operation returns.

        Args:
            mutation: Kind of write that just completed.
            user_id: Owner of the mutated record, for per-user keys.

        Returns:
            Number of keys removed.

        Raises:
            ValueError: If the rule needs a user_id and none was given.
        """
        removed = 0
        for template in INVALIDATION_RULES[mutation]:
            if "{user_id}" in template and user_id is None:
                raise ValueError(f"{mutation.value} invalidation requires user_id")
            key = template.format(user_id=user_id)
            removed += self._delete_pattern(key) if key.endswith("*") else self.delete(key)

        logger.info(
            "cache.invalidated",
            extra={"mutation": mutation.value, "user_id": user_id, "removed": removed},
        )
        return removed

    def invalidate_user_cache(self, user_id: int, *, raise_errors: bool = False) -> int:
        """Remove every key under ``user:{user_id}:*``.

        Args:
            user_id: Owner of the namespace.
            raise_errors: Re-raise StoreUnavailableError instead of reporting 0;
                set by operational callers that must tell an outage apart.

        Returns:
            Number of keys removed.
        """
        return self._delete_pattern(CacheKeys.user_namespace(user_id), raise_errors=raise_errors)

    def invalidate_all(self, *, raise_errors: bool = False) -> bool:
        """Flush the whole store, sessions and rate-limit counters included.

        Returns:
            False when the store was unavailable and raise_errors is not set.
        """
        try:
            self._store.flush_all()
        except StoreUnavailableError:
            self._count(error=True)
            logger.warning("cache.invalidate_failed", extra={"cache_key": "*"})
            if raise_errors:
                raise
            return False
        logger.warning("cache.flushed_all")
        return True

    # Per-user data

    def get_user_todos(self, user_id: int) -> list[TodoRead] | None:
        return self.get(CacheKeys.user_todos(user_id), list[TodoRead])

    def set_user_todos(self, user_id: int, todos: list[TodoRead], ttl: int | None = None) -> bool:
        return self.set(
            CacheKeys.user_todos(user_id), todos, list[TodoRead], ttl or self._ttls.user_todos_ttl
        )

    def get_user_profile(self, user_id: int) -> UserRead | None:
        return self.get(CacheKeys.user_profile(user_id), UserRead)

    def set_user_profile(self, user_id: int, profile: UserRead, ttl: int | None = None) -> bool:
        return self.set(
            CacheKeys.user_profile(user_id), profile, UserRead, ttl or self._ttls.user_profile_ttl
        )

    def warm_user_cache(self, user_id: int, todos: list[TodoRead], profile: UserRead) -> None:
        self.set_user_todos(user_id, todos)
        self.set_user_profile(user_id, profile)

    # Admin aggregates

    def get_all_users(self) -> list[AdminUserRead] | None:
        return self.get(CacheKeys.ALL_USERS, list[AdminUserRead])

    def set_all_users(self, users: list[AdminUserRead], ttl: int | None = None) -> bool:
        return self.set(
            CacheKeys.ALL_USERS, users, list[AdminUserRead], ttl or self._ttls.all_users_ttl
        )

    def get_all_todos(self) -> list[TodoRead] | None:
        return self.get(CacheKeys.ALL_TODOS, list[TodoRead])

    def set_all_todos(self, todos: list[TodoRead], ttl: int | None = None) -> bool:
        return self.set(CacheKeys.ALL_TODOS, todos, list[TodoRead], ttl or self._ttls.all_todos_ttl)

    def get_system_stats(self) -> SystemStats | None:
        return self.get(CacheKeys.SYSTEM_STATS, SystemStats)

    def set_system_stats(self, stats: SystemStats, ttl: int | None = None) -> bool:
        return self.set(
            CacheKeys.SYSTEM_STATS, stats, SystemStats, ttl or self._ttls.system_stats_ttl
        )

    # Sessions

    def set_user_session(self, user_id: int, session: UserSession, ttl: int | None = None) -> bool:
        """Write the session hash field and (re)arm the session TTL."""
        key = CacheKeys.session(user_id)
        payload = _encode(session, UserSession)
        try:
            self._store.hash_set(key, SESSION_FIELD, payload)
            self._store.expire(key, ttl or self._ttls.session_ttl)
        except StoreUnavailableError:
            self._count(error=True)
            logger.warning("session.store_failed", extra={"user_id": user_id})
            return False
        return True

    def get_user_session(self, user_id: int) -> UserSession | None:
        key = CacheKeys.session(user_id)
        try:
            raw = self._store.hash_get(key, SESSION_FIELD)
        except StoreUnavailableError:
            self._count(error=True)
            logger.warning("session.load_failed", extra={"user_id": user_id})
            return None
        if raw is None:
            return None
        try:
            return _decode(raw, UserSession)
        except MalformedCacheEntryError:
            self._count(error=True)
            logger.warning("session.malformed", extra={"user_id": user_id})
            return None

    def delete_user_session(self, user_id: int) -> int:
        return self.delete(CacheKeys.session(user_id))
