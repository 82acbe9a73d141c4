"""Service wiring.

Builds every service around one injected key-value store and one record store,
and exposes them to routes through ``app.state``. Nothing here is a module
level singleton, so tests build an isolated container per app instance.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable

from fastapi import Request

from app.adapters.kv_store.base import AbstractKeyValueStore
from app.adapters.rate_limit.base import AbstractRateLimiter
from app.adapters.rate_limit.fixed_window import StoreFixedWindowRateLimiter
from app.adapters.records.base import AbstractRecordStore
from app.core.config import Settings
from app.services.admin_service import AdminService
from app.services.auth_service import AuthService
from app.services.cache_service import CacheService
from app.services.health_service import HealthService
from app.services.profile_service import ProfileService
from app.services.session_service import SessionService
from app.services.store_admin_service import StoreAdminService
from app.services.todo_service import TodoService


@dataclass
class ServiceContainer:
    store: AbstractKeyValueStore
    records: AbstractRecordStore
    cache: CacheService
    rate_limiter: AbstractRateLimiter
    sessions: SessionService
    todos: TodoService
    profiles: ProfileService
    admin: AdminService
    auth: AuthService
    health: HealthService
    store_admin: StoreAdminService


def build_container(
    *,
    store: AbstractKeyValueStore,
    records: AbstractRecordStore,
    app_settings: Settings,
    clock: Callable[[], float] = time.time,
) -> ServiceContainer:
    """Construct all services around the given stores.

    Args:
        store: Shared key-value store for cache, sessions and rate limits.
        records: System of record for users and todos.
        app_settings: Resolved settings (TTLs, key listing cap).
        clock: Time source shared by the limiter, sessions and reports.
    """
    cache = CacheService(store, app_settings.cache)
    rate_limiter = StoreFixedWindowRateLimiter(store, clock=clock)
    sessions = SessionService(cache, clock=clock)
    return ServiceContainer(
        store=store,
        records=records,
        cache=cache,
        rate_limiter=rate_limiter,
        sessions=sessions,
        todos=TodoService(records, cache),
        profiles=ProfileService(records, cache, sessions),
        admin=AdminService(records, cache, sessions),
        auth=AuthService(records, cache, sessions),
        health=HealthService(store, records, clock=clock),
        store_admin=StoreAdminService(
            store,
            cache,
            rate_limiter,
            key_limit=app_settings.store.key_scan_limit,
            clock=clock,
        ),
    )


def get_container(request: Request) -> ServiceContainer:
    """FastAPI dependency returning the container bound to this app."""
    return request.app.state.container
