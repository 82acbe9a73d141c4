"""Application factory for FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers and the
service container) so tests can build an isolated app around in-memory stores
and a controllable clock.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import Callable

from fastapi import FastAPI

from app.adapters.kv_store.base import AbstractKeyValueStore
from app.adapters.kv_store.factory import create_kv_store
from app.adapters.records.base import AbstractRecordStore
from app.adapters.records.in_memory import InMemoryRecordStore
from app.api.routes import (
    admin_router,
    auth_router,
    health_router,
    profile_router,
    store_admin_router,
    todos_router,
)
from app.core.config import Settings, settings
from app.core.container import build_container
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.openapi import apply_openapi_customizations

logger = logging.getLogger(__name__)


def create_app(
    *,
    store: AbstractKeyValueStore | None = None,
    records: AbstractRecordStore | None = None,
    clock: Callable[[], float] = time.time,
    app_settings: Settings = settings,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        store: Shared key-value store; built from STORE_* settings if omitted.
        records: System of record; an in-memory store if omitted.
        clock: Time source for rate limiting, sessions and reports.
        app_settings: Settings to build from; defaults to the global settings.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(app_settings.log)

    kv_store = store if store is not None else create_kv_store(app_settings.store)
    container = build_container(
        store=kv_store,
        records=records if records is not None else InMemoryRecordStore(clock=clock),
        app_settings=app_settings,
        clock=clock,
    )

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        logger.info("app.startup", extra={"app_env": app_settings.app_env})
        yield
        kv_store.close()
        logger.info("app.shutdown")

    app = FastAPI(
        title="Todo Cache API",
        description=(
            "Todo and user backend with a shared key-value store providing "
            "read-through caching with write invalidation, server-side "
            "sessions, distributed fixed-window rate limiting and an "
            "administrative view of the store."
        ),
        version="0.1.0",
        debug=app_settings.app.debug,
        lifespan=lifespan,
    )
    app.state.container = container

    # Middleware
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(auth_router)
    app.include_router(todos_router)
    app.include_router(profile_router)
    app.include_router(admin_router)
    app.include_router(store_admin_router)
    app.include_router(health_router)

    # OpenAPI customizations (security scheme, tags, exemptions)
    apply_openapi_customizations(app)

    return app
