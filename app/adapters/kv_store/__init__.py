"""Key-value store adapters.

Components depend on AbstractKeyValueStore and receive a concrete store by
injection, so the shared Redis server can be swapped for the in-memory store
in tests and single-process deployments.
"""

from app.adapters.kv_store.base import AbstractKeyValueStore
from app.adapters.kv_store.factory import create_kv_store
from app.adapters.kv_store.in_memory import InMemoryKeyValueStore
from app.adapters.kv_store.redis_store import RedisKeyValueStore

__all__ = [
    "AbstractKeyValueStore",
    "InMemoryKeyValueStore",
    "RedisKeyValueStore",
    "create_kv_store",
]
