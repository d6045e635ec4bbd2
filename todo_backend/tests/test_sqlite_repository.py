from datetime import date, datetime

import pytest

from planner_api.db import SQLiteRepository
from planner_api.errors import DuplicateName, ReferentialConflict
from planner_api.repositories import get_repository
from planner_api.schemas import CategoryCreate, TodoCreate, TodoUpdate
from planner_api.services import CategoryService, TodoService


@pytest.fixture()
def sqlite_repo(tmp_path) -> SQLiteRepository:
    return SQLiteRepository(str(tmp_path / "nested" / "planner.db"))


@pytest.fixture()
def services(sqlite_repo, clock):
    return TodoService(sqlite_repo, clock), CategoryService(sqlite_repo)


def test_todo_fields_survive_storage(sqlite_repo, services, clock):
    todos, categories = services
    cat = categories.create_category("alice", CategoryCreate(name="Work", emoji="💼", color="#D5E8FF"))
    created = todos.create_todo(
        "alice",
        TodoCreate(
            title="Standup", emoji="🗣", category_id=cat["id"], due_date="2024-01-15",
            due_time="09:30", recurrence="weekly",
        ),
    )

    stored = sqlite_repo.get_todo(created["id"])
    assert stored["due_date"] == date(2024, 1, 15)
    assert stored["due_time"] == "09:30"
    assert stored["recurrence"] == "weekly"
    assert stored["category_id"] == cat["id"]
    assert stored["completed"] is False
    assert stored["completed_at"] is None
    assert stored["created_at"] == clock.now()


def test_completion_is_unique_per_todo_and_date(sqlite_repo, services):
    todos, _ = services
    daily = todos.create_todo("alice", TodoCreate(title="Walk", emoji="🚶", due_date="2024-01-01", recurrence="daily"))

    first = sqlite_repo.insert_completion(daily["id"], "alice", date(2024, 1, 15), datetime(2024, 1, 15, 8))
    second = sqlite_repo.insert_completion(daily["id"], "alice", date(2024, 1, 15), datetime(2024, 1, 15, 9))

    assert first["id"] == second["id"]
    assert second["completed_at"] == datetime(2024, 1, 15, 8)
    assert len(sqlite_repo.list_completions("alice", date(2024, 1, 15))) == 1


def test_toggle_and_list_through_service(sqlite_repo, services):
    todos, _ = services
    daily = todos.create_todo("alice", TodoCreate(title="Walk", emoji="🚶", due_date="2024-01-01", recurrence="daily"))
    once = todos.create_todo("alice", TodoCreate(title="Dentist", emoji="🦷", due_date="2024-01-15", due_time="15:00"))

    todos.toggle_completion("alice", daily["id"], date(2024, 1, 15))
    todos.toggle_completion("alice", once["id"], date(2024, 1, 15))

    items = todos.list_for_date("alice", date(2024, 1, 15))
    assert [(t["id"], t["completed"]) for t in items] == [(daily["id"], True), (once["id"], True)]

    week = todos.list_for_range("alice", date(2024, 1, 14), date(2024, 1, 16))
    assert [t["completed"] for t in week[date(2024, 1, 16)]] == [False]

    todos.toggle_completion("alice", daily["id"], date(2024, 1, 15))
    assert sqlite_repo.get_completion(daily["id"], date(2024, 1, 15)) is None


def test_patch_clears_nullable_fields(sqlite_repo, services):
    todos, _ = services
    todo = todos.create_todo("alice", TodoCreate(title="Read", emoji="📚", due_date="2024-01-15", due_time="21:00"))

    updated = todos.update_todo("alice", todo["id"], TodoUpdate(due_time=None, due_date="2024-02-01"))
    assert updated["due_time"] is None
    assert updated["due_date"] == date(2024, 2, 1)


def test_delete_todo_cascades_completions(sqlite_repo, services):
    todos, _ = services
    daily = todos.create_todo("alice", TodoCreate(title="Walk", emoji="🚶", due_date="2024-01-01", recurrence="daily"))
    todos.toggle_completion("alice", daily["id"], date(2024, 1, 15))

    assert sqlite_repo.delete_todo(daily["id"]) is True
    assert sqlite_repo.list_completions("alice") == []
    assert sqlite_repo.delete_todo(daily["id"]) is False


def test_category_rules(sqlite_repo, services):
    todos, categories = services
    cat = categories.create_category("alice", CategoryCreate(name="Home", emoji="🏠", color="#E8D5FF"))
    todos.create_todo("alice", TodoCreate(title="Vacuum", emoji="🧹", category_id=cat["id"], due_date="2024-01-15"))

    assert sqlite_repo.find_category_by_name("alice", "Home")["id"] == cat["id"]
    assert sqlite_repo.find_category_by_name("bob", "Home") is None
    with pytest.raises(ReferentialConflict):
        categories.delete_category("alice", cat["id"])


def test_category_name_is_unique_per_owner(sqlite_repo):
    sqlite_repo.insert_category("alice", "Home", "🏠", "#E8D5FF")
    work = sqlite_repo.insert_category("alice", "Work", "💼", "#D5E8FF")

    with pytest.raises(DuplicateName):
        sqlite_repo.insert_category("alice", "Home", "🏡", "#FFFFFF")
    with pytest.raises(DuplicateName):
        sqlite_repo.patch_category(work["id"], {"name": "Home"})

    assert sqlite_repo.insert_category("bob", "Home", "🏠", "#E8D5FF")["owner"] == "bob"
    assert [c["name"] for c in sqlite_repo.list_categories("alice")] == ["Home", "Work"]


def test_rejects_unknown_patch_fields(sqlite_repo, services):
    todos, _ = services
    todo = todos.create_todo("alice", TodoCreate(title="Read", emoji="📚", due_date="2024-01-15"))
    with pytest.raises(ValueError):
        sqlite_repo.patch_todo(todo["id"], {"owner": "mallory"})


def test_factory_selects_sqlite_backend(tmp_path, monkeypatch):
    monkeypatch.setenv("PERSISTENCE_BACKEND", "sqlite")
    monkeypatch.setenv("SQLITE_DB_PATH", str(tmp_path / "factory.db"))
    get_repository.cache_clear()
    try:
        repo = get_repository()
        assert isinstance(repo, SQLiteRepository)
        assert repo.backend_name == "sqlite"
        assert (tmp_path / "factory.db").exists()
    finally:
        get_repository.cache_clear()
