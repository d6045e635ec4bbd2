from __future__ import annotations

import os
from datetime import datetime

import pytest

# Memory backend and two known users for every test; set before the app is imported.
os.environ["PERSISTENCE_BACKEND"] = "memory"
os.environ["AUTH_USERS"] = "alice:wonderland,bob:builder"

from fastapi.testclient import TestClient  # noqa: E402

from planner_api.clock import get_clock  # noqa: E402
from planner_api.main import app  # noqa: E402
from planner_api.repositories import InMemoryRepository, get_repository  # noqa: E402
from planner_api.services import CategoryService, TodoService  # noqa: E402

from .fakes import FixedClock  # noqa: E402


@pytest.fixture()
def clock() -> FixedClock:
    # Monday
    return FixedClock(datetime(2024, 1, 15, 9, 0, 0))


@pytest.fixture()
def repo() -> InMemoryRepository:
    return InMemoryRepository()


@pytest.fixture()
def todo_service(repo: InMemoryRepository, clock: FixedClock) -> TodoService:
    return TodoService(repo, clock)


@pytest.fixture()
def category_service(repo: InMemoryRepository) -> CategoryService:
    return CategoryService(repo)


@pytest.fixture()
def client(repo: InMemoryRepository, clock: FixedClock):
    """
    TestClient wired to a fresh in-memory repository and the fixed clock.
    """
    app.dependency_overrides[get_repository] = lambda: repo
    app.dependency_overrides[get_clock] = lambda: clock
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
