"""Factory for creating key-value store instances."""

from __future__ import annotations

import logging

from app.adapters.kv_store.base import AbstractKeyValueStore
from app.adapters.kv_store.in_memory import InMemoryKeyValueStore
from app.adapters.kv_store.redis_store import RedisKeyValueStore
from app.core.config import StoreSettings, settings
from app.core.errors import ValidationAppError

logger = logging.getLogger(__name__)


def create_kv_store(store_settings: StoreSettings | None = None) -> AbstractKeyValueStore:
    """Instantiate the configured key-value store backend.

    Connections are established lazily by redis-py, so an unreachable server
    does not prevent startup; it surfaces as StoreUnavailableError on use.

    Args:
        store_settings: Optional store settings; defaults to global settings.

    Returns:
        AbstractKeyValueStore: Configured store instance.

    Raises:
        ValidationAppError: If the backend name is not recognized.
    """
    cfg = store_settings or settings.store
    backend = cfg.backend.lower()

    if backend == "redis":
        logger.info("store.backend_selected", extra={"backend": "redis"})
        return RedisKeyValueStore.from_url(
            cfg.url,
            socket_timeout=cfg.socket_timeout_seconds,
            socket_connect_timeout=cfg.connect_timeout_seconds,
        )

    if backend == "memory":
        logger.warning(
            "store.backend_selected",
            extra={"backend": "memory", "hint": "per-process only; limits multiply with workers"},
        )
        return InMemoryKeyValueStore()

    raise ValidationAppError(
        code="store_unknown_backend",
        message=f"Unknown store backend: '{backend}'. Supported backends: redis, memory",
    )
