"""Operational endpoints over the shared key-value store.

Admin only. Store failures surface as 503 rather than being absorbed, so an
operator can tell an empty keyspace from an unreachable one.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from app.adapters.rate_limit.base import ADMIN_RATE_LIMIT
from app.core.auth import require_admin
from app.core.container import ServiceContainer, get_container
from app.core.rate_limit import rate_limit
from app.schemas.admin import KeyListing, MessageResponse, StoreInfo

router = APIRouter(
    prefix="/admin/store",
    tags=["Store"],
    dependencies=[Depends(require_admin), Depends(rate_limit(ADMIN_RATE_LIMIT))],
)

Container = Annotated[ServiceContainer, Depends(get_container)]


@router.get("/info", response_model=StoreInfo)
def store_info(container: Container) -> StoreInfo:
    return container.store_admin.info()


@router.get("/keys/{pattern:path}", response_model=KeyListing)
def list_keys(pattern: str, container: Container) -> KeyListing:
    """List keys matching a glob pattern (e.g. ``user:*``), capped."""
    return container.store_admin.list_keys(pattern)


@router.delete("/cache/all", response_model=MessageResponse)
def clear_all(container: Container) -> MessageResponse:
    container.store_admin.flush_all()
    return MessageResponse(message="All cache cleared successfully")


@router.delete("/cache/user/{user_id}", response_model=MessageResponse)
def clear_user(user_id: int, container: Container) -> MessageResponse:
    removed = container.store_admin.clear_user(user_id)
    return MessageResponse(message=f"Cache cleared for user {user_id}", removed=removed)


@router.delete("/cache/{namespace}", response_model=MessageResponse)
def clear_namespace(namespace: str, container: Container) -> MessageResponse:
    """Drop one admin aggregate: ``todos``, ``users`` or ``stats``."""
    removed = container.store_admin.clear_namespace(namespace)
    return MessageResponse(message=f"{namespace.capitalize()} cache cleared successfully", removed=removed)


@router.delete("/rate-limit/{client_key}", response_model=MessageResponse)
def reset_rate_limit(client_key: str, container: Container) -> MessageResponse:
    """Reset every window counter for a client key such as ``user:42`` or ``ip:10.0.0.1``."""
    removed = container.store_admin.reset_rate_limit(client_key)
    return MessageResponse(message=f"Rate limit reset for {client_key}", removed=removed)
