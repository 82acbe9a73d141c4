"""Tests for the store operational view and health checks."""

from unittest.mock import Mock

import pytest

from app.adapters.kv_store.base import AbstractKeyValueStore
from app.adapters.rate_limit import API_RATE_LIMIT
from app.core.errors import StoreUnavailableError, ValidationAppError
from app.services.cache_service import CacheKeys, CacheService
from app.services.health_service import HEALTH_CHECK_KEY, HealthService
from app.services.store_admin_service import StoreAdminService


def test_info_reports_size_and_timestamp(container, store, clock) -> None:
    store.set("a", "1")

    info = container.store_admin.info()

    assert info.db_size == 1
    assert info.timestamp.timestamp() == clock.now
    assert "keyspace" in info.info


def test_list_keys_caps_listing_but_counts_all(store, container) -> None:
    for i in range(5):
        store.set(f"user:{i}:todos", "[]")
    store_admin = StoreAdminService(store, container.cache, container.rate_limiter, key_limit=3)

    listing = store_admin.list_keys("user:*")

    assert listing.count == 5
    assert listing.keys == ["user:0:todos", "user:1:todos", "user:2:todos"]


def test_clear_namespace(container, store) -> None:
    store.set(CacheKeys.ALL_TODOS, "[]")

    assert container.store_admin.clear_namespace("todos") == 1
    assert container.store_admin.clear_namespace("todos") == 0


def test_clear_unknown_namespace(container) -> None:
    with pytest.raises(ValidationAppError) as exc_info:
        container.store_admin.clear_namespace("sessions")

    assert exc_info.value.code == "unknown_namespace"


def test_clear_user(container, store) -> None:
    store.set("user:3:todos", "[]")
    store.set("user:3:profile", "{}")
    store.set("user:30:todos", "[]")

    assert container.store_admin.clear_user(3) == 2
    assert store.exists("user:30:todos")


def test_flush_all(container, store) -> None:
    store.set("a", "1")
    container.store_admin.flush_all()
    assert store.db_size() == 0


def test_reset_rate_limit(container) -> None:
    container.rate_limiter.check("ip:10.0.0.9", API_RATE_LIMIT)

    assert container.store_admin.reset_rate_limit("ip:10.0.0.9") == 1


def test_store_errors_propagate(container) -> None:
    store = Mock(spec=AbstractKeyValueStore)
    store.keys_matching.side_effect = StoreUnavailableError(code="store_unavailable", message="down")
    store_admin = StoreAdminService(store, CacheService(store), container.rate_limiter)

    with pytest.raises(StoreUnavailableError):
        store_admin.list_keys("*")


def test_health_all_healthy(container, store) -> None:
    report = container.health.check()

    assert report.status == "healthy"
    assert report.services["store"].status == "healthy"
    assert report.services["database"].status == "healthy"
    assert store.exists(HEALTH_CHECK_KEY) is False


def test_health_reports_store_outage(records, clock) -> None:
    store = Mock(spec=AbstractKeyValueStore)
    store.set.side_effect = StoreUnavailableError(code="store_unavailable", message="down")

    report = HealthService(store, records, clock=clock).check()

    assert report.status == "unhealthy"
    assert report.services["store"].status == "unhealthy"
    assert report.services["database"].status == "healthy"


def test_health_detects_echo_mismatch(records) -> None:
    store = Mock(spec=AbstractKeyValueStore)
    store.get.return_value = "stale"

    with pytest.raises(StoreUnavailableError):
        HealthService(store, records).ping_store()


def test_info_reports_cache_counters(container) -> None:
    container.cache.get_system_stats()

    info = container.store_admin.info()

    assert info.cache_stats == {"hits": 0, "misses": 1, "errors": 0}


@pytest.mark.parametrize(
    "action, store_method",
    [
        (lambda admin: admin.flush_all(), "flush_all"),
        (lambda admin: admin.clear_user(3), "keys_matching"),
    ],
)
def test_evictions_propagate_store_errors(container, action, store_method: str) -> None:
    store = Mock(spec=AbstractKeyValueStore)
    getattr(store, store_method).side_effect = StoreUnavailableError(
        code="store_unavailable", message="down"
    )
    cache = CacheService(store)
    store_admin = StoreAdminService(store, cache, container.rate_limiter)

    with pytest.raises(StoreUnavailableError):
        action(store_admin)
    assert cache.stats()["errors"] == 1
