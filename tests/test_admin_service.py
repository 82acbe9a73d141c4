"""Tests for admin and profile services."""

import pytest

from app.core.errors import ConflictAppError, NotFoundAppError
from app.schemas.todo import TodoCreate, TodoStatus
from app.schemas.user import ProfileUpdate, RegisterRequest, Role, UserUpdate
from app.services.cache_service import CacheKeys


@pytest.fixture
def admin(records):
    return records.create_user(
        email="root@example.com", username="root", password="secret1", role=Role.ADMIN
    )


@pytest.fixture
def user(records):
    return records.create_user(email="ana@example.com", username="ana", password="secret1")


def test_system_stats(container, admin, user) -> None:
    container.todos.create(TodoCreate(title="a"), user.id)
    container.todos.create(TodoCreate(title="b", status=TodoStatus.IN_PROGRESS), user.id)
    container.todos.create(TodoCreate(title="c", status=TodoStatus.COMPLETED), admin.id)

    stats = container.admin.system_stats()

    assert stats.total_users == 2
    assert stats.admin_users == 1
    assert stats.regular_users == 1
    assert stats.total_todos == 3
    assert stats.completed_todos == 1
    assert stats.pending_todos == 2
    assert container.cache.get_system_stats() == stats


def test_list_users_counts_todos_and_caches(container, admin, user, store) -> None:
    container.todos.create(TodoCreate(title="a"), user.id)

    users = container.admin.list_users()

    counts = {u.username: u.todo_count for u in users}
    assert counts == {"ana": 1, "root": 0}
    assert store.exists(CacheKeys.ALL_USERS)


def test_register_invalidates_user_listing(container, admin) -> None:
    container.admin.list_users()

    container.auth.register(
        RegisterRequest(email="new@example.com", username="newbie", password="secret1")
    )

    assert len(container.admin.list_users()) == 2


def test_get_user_includes_todos(container, user) -> None:
    container.todos.create(TodoCreate(title="a"), user.id)

    detail = container.admin.get_user(user.id)

    assert [t.title for t in detail.todos] == ["a"]
    with pytest.raises(NotFoundAppError):
        container.admin.get_user(999)


def test_update_user_conflict_checked_before_write(container, admin, user) -> None:
    with pytest.raises(ConflictAppError):
        container.admin.update_user(user.id, UserUpdate(username="root"))

    assert container.admin.get_user(user.id).username == "ana"


def test_role_change_ends_session(container, user) -> None:
    container.sessions.create(user_id=user.id, username="ana", role=Role.USER)

    updated = container.admin.update_user(user.id, UserUpdate(role=Role.ADMIN))

    assert updated.role == Role.ADMIN
    assert container.sessions.get(user.id) is None


def test_update_refreshes_embedded_owner(container, user) -> None:
    container.todos.create(TodoCreate(title="a"), user.id)
    container.todos.find_all(user.id, Role.USER)

    container.admin.update_user(user.id, UserUpdate(username="ana2"))

    todos = container.todos.find_all(user.id, Role.USER)
    assert todos[0].owner.username == "ana2"


def test_delete_user_cascades(container, user, store) -> None:
    container.todos.create(TodoCreate(title="a"), user.id)
    container.profiles.get_profile(user.id)
    container.sessions.create(user_id=user.id, username="ana", role=Role.USER)

    container.admin.delete_user(user.id)

    assert store.keys_matching(f"user:{user.id}:*") == []
    assert container.sessions.get(user.id) is None
    assert container.admin.list_all_todos() == []
    with pytest.raises(NotFoundAppError):
        container.admin.delete_user(user.id)


def test_profile_read_through(container, user, records) -> None:
    profile = container.profiles.get_profile(user.id)
    records.update_user(user.id, {"first_name": "Ana"})

    assert container.profiles.get_profile(user.id) == profile


def test_profile_update_invalidates(container, user) -> None:
    container.profiles.get_profile(user.id)

    container.profiles.update_profile(user.id, ProfileUpdate(first_name="Ana"))

    assert container.profiles.get_profile(user.id).first_name == "Ana"


def test_profile_update_conflict(container, admin, user) -> None:
    with pytest.raises(ConflictAppError):
        container.profiles.update_profile(user.id, ProfileUpdate(email="root@example.com"))


def test_profile_delete(container, user) -> None:
    container.sessions.create(user_id=user.id, username="ana", role=Role.USER)

    container.profiles.delete_profile(user.id)

    assert container.sessions.get(user.id) is None
    with pytest.raises(NotFoundAppError):
        container.profiles.get_profile(user.id)
