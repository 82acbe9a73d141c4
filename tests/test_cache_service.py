"""Tests for the read-through cache and its invalidation rules."""

from unittest.mock import Mock

import pytest

from app.adapters.kv_store.base import AbstractKeyValueStore
from app.core.errors import StoreUnavailableError
from app.schemas.admin import SystemStats
from app.services.cache_service import INVALIDATION_RULES, CacheKeys, CacheService, Mutation
from app.services.profile_service import to_user_read
from app.services.todo_service import to_todo_read

STATS = SystemStats(
    total_users=2,
    total_todos=3,
    admin_users=1,
    regular_users=1,
    completed_todos=1,
    pending_todos=2,
)


@pytest.fixture
def user(records):
    return records.create_user(email="ana@example.com", username="ana", password="secret1")


def _fill_user_keys(cache: CacheService, records, user) -> None:
    todo = records.create_todo(user_id=user.id, title="Write tests")
    cache.set_user_todos(user.id, [to_todo_read(todo)])
    cache.set_user_profile(user.id, to_user_read(user))
    cache.set_all_todos([to_todo_read(todo)])
    cache.set_all_users([])
    cache.set_system_stats(STATS)


def test_set_then_get_round_trips_typed_value(cache: CacheService) -> None:
    assert cache.set_system_stats(STATS) is True

    assert cache.get_system_stats() == STATS
    assert cache.stats()["hits"] == 1


def test_miss_returns_none(cache: CacheService) -> None:
    assert cache.get_user_profile(99) is None
    assert cache.stats() == {"hits": 0, "misses": 1, "errors": 0}


def test_entries_expire_after_ttl(cache: CacheService, clock) -> None:
    cache.set_system_stats(STATS, ttl=5)

    clock.advance(5)

    assert cache.get_system_stats() is None


def test_default_ttl_applies_per_namespace(cache: CacheService, store) -> None:
    cache.set_system_stats(STATS)
    assert store.ttl(CacheKeys.SYSTEM_STATS) == pytest.approx(cache.ttls.system_stats_ttl)


def test_malformed_payload_reads_as_miss(cache: CacheService, store) -> None:
    store.set(CacheKeys.SYSTEM_STATS, "{not json")

    assert cache.get_system_stats() is None
    assert cache.stats()["errors"] == 1


def test_wrong_type_reads_as_miss(cache: CacheService, store) -> None:
    store.hash_set(CacheKeys.SYSTEM_STATS, "data", "{}")
    store.set(CacheKeys.session(1), "plain")

    assert cache.get_system_stats() is None
    assert cache.get_user_session(1) is None
    assert cache.stats()["errors"] == 2


def test_delete_is_idempotent(cache: CacheService) -> None:
    cache.set_system_stats(STATS)

    assert cache.delete(CacheKeys.SYSTEM_STATS) == 1
    assert cache.delete(CacheKeys.SYSTEM_STATS) == 0
    assert cache.exists(CacheKeys.SYSTEM_STATS) is False


def test_store_failures_are_absorbed() -> None:
    store = Mock(spec=AbstractKeyValueStore)
    down = StoreUnavailableError(code="store_unavailable", message="down")
    store.get.side_effect = down
    store.set.side_effect = down
    store.delete.side_effect = down
    store.keys_matching.side_effect = down
    cache = CacheService(store)

    assert cache.get_system_stats() is None
    assert cache.set_system_stats(STATS) is False
    assert cache.invalidate(Mutation.USER_DELETED, user_id=1) == 0
    assert cache.stats()["errors"] == 6


def test_todo_mutation_evicts_owner_and_aggregates(cache: CacheService, records, user, store) -> None:
    other = records.create_user(email="bo@example.com", username="bob", password="secret1")
    _fill_user_keys(cache, records, user)
    cache.set_user_todos(other.id, [])

    cache.invalidate(Mutation.TODO_CREATED, user_id=user.id)

    assert cache.get_user_todos(user.id) is None
    assert cache.get_all_todos() is None
    assert cache.get_system_stats() is None
    assert cache.get_user_profile(user.id) is not None
    assert cache.get_all_users() == []
    assert cache.get_user_todos(other.id) == []


def test_user_deletion_evicts_namespace_and_aggregates(cache: CacheService, records, user, store) -> None:
    _fill_user_keys(cache, records, user)
    store.set(f"user:{user.id}:preferences", "{}")

    removed = cache.invalidate(Mutation.USER_DELETED, user_id=user.id)

    assert removed == 6
    assert store.keys_matching(f"user:{user.id}:*") == []
    for key in (CacheKeys.ALL_USERS, CacheKeys.ALL_TODOS, CacheKeys.SYSTEM_STATS):
        assert store.exists(key) is False


def test_user_update_evicts_embedded_owner_copies(cache: CacheService, records, user) -> None:
    _fill_user_keys(cache, records, user)

    cache.invalidate(Mutation.USER_UPDATED, user_id=user.id)

    assert cache.get_user_profile(user.id) is None
    assert cache.get_user_todos(user.id) is None
    assert cache.get_all_todos() is None
    assert cache.get_all_users() is None


def test_user_created_needs_no_user_id(cache: CacheService) -> None:
    cache.set_all_users([])
    cache.set_system_stats(STATS)

    assert cache.invalidate(Mutation.USER_CREATED) == 2


def test_missing_user_id_raises(cache: CacheService) -> None:
    with pytest.raises(ValueError):
        cache.invalidate(Mutation.TODO_UPDATED)


def test_every_mutation_has_a_rule() -> None:
    assert set(INVALIDATION_RULES) == set(Mutation)


def test_invalidate_user_cache_leaves_other_users(cache: CacheService, store) -> None:
    store.set("user:1:todos", "[]")
    store.set("user:1:profile", "{}")
    store.set("user:10:todos", "[]")

    assert cache.invalidate_user_cache(1) == 2
    assert store.exists("user:10:todos") is True


def test_warm_user_cache(cache: CacheService, records, user) -> None:
    todo = records.create_todo(user_id=user.id, title="Warm")

    cache.warm_user_cache(user.id, [to_todo_read(todo)], to_user_read(user))

    assert [t.title for t in cache.get_user_todos(user.id)] == ["Warm"]
    assert cache.get_user_profile(user.id).username == "ana"


def test_invalidate_all_flushes_store(cache: CacheService, store) -> None:
    cache.set_system_stats(STATS)
    store.set("rate_limit:user:1:0", "3")

    assert cache.invalidate_all() is True
    assert store.db_size() == 0


def test_invalidate_all_reports_outage() -> None:
    store = Mock(spec=AbstractKeyValueStore)
    store.flush_all.side_effect = StoreUnavailableError(code="store_unavailable", message="down")

    assert CacheService(store).invalidate_all() is False


def test_raise_errors_opts_into_outage() -> None:
    store = Mock(spec=AbstractKeyValueStore)
    store.keys_matching.side_effect = StoreUnavailableError(code="store_unavailable", message="down")
    cache = CacheService(store)

    assert cache.invalidate_user_cache(1) == 0
    with pytest.raises(StoreUnavailableError):
        cache.invalidate_user_cache(1, raise_errors=True)
