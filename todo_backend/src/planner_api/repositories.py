from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import date, datetime
from functools import lru_cache
from threading import RLock
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .errors import DuplicateName
from .models import CategoryEntity, CompletionEntity, TodoEntity
from .settings import get_settings

logger = logging.getLogger(__name__)

# Fields that may be changed through patch_* calls.
CATEGORY_PATCH_FIELDS = frozenset({"name", "emoji", "color"})
TODO_PATCH_FIELDS = frozenset(
    {"title", "emoji", "category_id", "due_date", "due_time", "recurrence", "completed", "completed_at"}
)


def _check_patch(fields: Mapping[str, Any], allowed: frozenset) -> None:
    unknown = set(fields) - allowed
    if unknown:
        raise ValueError(f"Unsupported patch fields: {sorted(unknown)}")


# PUBLIC_INTERFACE
class Repository(ABC):
    """
    Abstract storage contract for categories, todos and per-date completions.

    Records are owner-scoped by the service layer; the repository only offers the
    indexed lookups the service needs. Returned records are copies.
    """

    backend_name = "abstract"

    # ---- categories ----

    @abstractmethod
    def insert_category(self, owner: str, name: str, emoji: str, color: str) -> CategoryEntity:
        """Create and return a new category. Raise DuplicateName if the owner already has the name."""

    @abstractmethod
    def get_category(self, category_id: int) -> Optional[CategoryEntity]:
        """Return a category by id, or None if not found."""

    @abstractmethod
    def find_category_by_name(self, owner: str, name: str) -> Optional[CategoryEntity]:
        """Return the owner's category with exactly this name, or None."""

    @abstractmethod
    def list_categories(self, owner: str) -> List[CategoryEntity]:
        """Return all categories of the owner ordered by id."""

    @abstractmethod
    def patch_category(self, category_id: int, fields: Mapping[str, Any]) -> Optional[CategoryEntity]:
        """
        Update the given fields. Return the updated category or None if not found.
        Raise DuplicateName if a rename clashes with another category of the owner.
        """

    @abstractmethod
    def delete_category(self, category_id: int) -> bool:
        """Delete a category. Return True if deleted, False if not found."""

    # ---- todos ----

    @abstractmethod
    def insert_todo(self, record: Mapping[str, Any]) -> TodoEntity:
        """Create a todo from every TodoEntity field except 'id' and return it."""

    @abstractmethod
    def get_todo(self, todo_id: int) -> Optional[TodoEntity]:
        """Return a todo by id, or None if not found."""

    @abstractmethod
    def list_todos(self, owner: str) -> List[TodoEntity]:
        """Return all todos of the owner ordered by id."""

    @abstractmethod
    def todo_exists_for_category(self, owner: str, category_id: int) -> bool:
        """Return True if any todo of the owner references the category."""

    @abstractmethod
    def patch_todo(self, todo_id: int, fields: Mapping[str, Any]) -> Optional[TodoEntity]:
        """Update the given fields. Return the updated todo or None if not found."""

    @abstractmethod
    def delete_todo(self, todo_id: int) -> bool:
        """Delete a todo together with its completion records. Return True if deleted."""

    # ---- completions ----

    @abstractmethod
    def get_completion(self, todo_id: int, completion_date: date) -> Optional[CompletionEntity]:
        """Return the completion for exactly (todo_id, completion_date), or None."""

    @abstractmethod
    def list_completions(self, owner: str, completion_date: Optional[date] = None) -> List[CompletionEntity]:
        """Return the owner's completions, optionally only those on one date."""

    @abstractmethod
    def insert_completion(
        self, todo_id: int, owner: str, completion_date: date, completed_at: datetime
    ) -> CompletionEntity:
        """
        Record a completion. (todo_id, completion_date) is unique: if a record already
        exists, it is returned unchanged instead of creating a second one.
        """

    @abstractmethod
    def delete_completion(self, completion_id: int) -> bool:
        """Delete a completion by id. Return True if deleted, False if not found."""


class InMemoryRepository(Repository):
    """
    Thread-safe in-memory repository suitable for testing and default runtime.
    """

    backend_name = "memory"

    def __init__(self) -> None:
        self._lock = RLock()
        self._categories: Dict[int, CategoryEntity] = {}
        self._todos: Dict[int, TodoEntity] = {}
        self._completions: Dict[int, CompletionEntity] = {}
        # unique index on (todo_id, completion_date)
        self._completion_index: Dict[Tuple[int, date], int] = {}
        self._next_id = 1

    def _allocate_id(self) -> int:
        with self._lock:
            i = self._next_id
            self._next_id += 1
            return i

    def _name_taken(self, owner: str, name: str, exclude_id: Optional[int] = None) -> bool:
        # caller holds the lock
        return any(
            c["owner"] == owner and c["name"] == name and c["id"] != exclude_id
            for c in self._categories.values()
        )

    # ---- categories ----

    def insert_category(self, owner: str, name: str, emoji: str, color: str) -> CategoryEntity:
        entity: CategoryEntity = {
            "id": self._allocate_id(),
            "owner": owner,
            "name": name,
            "emoji": emoji,
            "color": color,
        }
        with self._lock:
            if self._name_taken(owner, name):
                raise DuplicateName()
            self._categories[entity["id"]] = entity
        return entity.copy()  # type: ignore[return-value]

    def get_category(self, category_id: int) -> Optional[CategoryEntity]:
        with self._lock:
            item = self._categories.get(category_id)
            return None if item is None else item.copy()  # type: ignore[return-value]

    def find_category_by_name(self, owner: str, name: str) -> Optional[CategoryEntity]:
        with self._lock:
            for c in self._categories.values():
                if c["owner"] == owner and c["name"] == name:
                    return c.copy()  # type: ignore[return-value]
            return None

    def list_categories(self, owner: str) -> List[CategoryEntity]:
        with self._lock:
            items = [c for c in self._categories.values() if c["owner"] == owner]
            return [c.copy() for c in sorted(items, key=lambda c: c["id"])]  # type: ignore[misc]

    def patch_category(self, category_id: int, fields: Mapping[str, Any]) -> Optional[CategoryEntity]:
        _check_patch(fields, CATEGORY_PATCH_FIELDS)
        with self._lock:
            existing = self._categories.get(category_id)
            if existing is None:
                return None
            if "name" in fields and self._name_taken(existing["owner"], fields["name"], exclude_id=category_id):
                raise DuplicateName()
            updated = existing.copy()
            updated.update(fields)  # type: ignore[typeddict-item]
            self._categories[category_id] = updated  # type: ignore[assignment]
            return updated.copy()  # type: ignore[return-value]

    def delete_category(self, category_id: int) -> bool:
        with self._lock:
            return self._categories.pop(category_id, None) is not None

    # ---- todos ----

    def insert_todo(self, record: Mapping[str, Any]) -> TodoEntity:
        entity: TodoEntity = {"id": self._allocate_id(), **record}  # type: ignore[typeddict-item]
        with self._lock:
            self._todos[entity["id"]] = entity
        return entity.copy()  # type: ignore[return-value]

    def get_todo(self, todo_id: int) -> Optional[TodoEntity]:
        with self._lock:
            item = self._todos.get(todo_id)
            return None if item is None else item.copy()  # type: ignore[return-value]

    def list_todos(self, owner: str) -> List[TodoEntity]:
        with self._lock:
            items = [t for t in self._todos.values() if t["owner"] == owner]
            return [t.copy() for t in sorted(items, key=lambda t: t["id"])]  # type: ignore[misc]

    def todo_exists_for_category(self, owner: str, category_id: int) -> bool:
        with self._lock:
            return any(
                t["owner"] == owner and t["category_id"] == category_id for t in self._todos.values()
            )

    def patch_todo(self, todo_id: int, fields: Mapping[str, Any]) -> Optional[TodoEntity]:
        _check_patch(fields, TODO_PATCH_FIELDS)
        with self._lock:
            existing = self._todos.get(todo_id)
            if existing is None:
                return None
            updated = existing.copy()
            updated.update(fields)  # type: ignore[typeddict-item]
            self._todos[todo_id] = updated  # type: ignore[assignment]
            return updated.copy()  # type: ignore[return-value]

    def delete_todo(self, todo_id: int) -> bool:
        with self._lock:
            if self._todos.pop(todo_id, None) is None:
                return False
            for key in [k for k in self._completion_index if k[0] == todo_id]:
                self._completions.pop(self._completion_index.pop(key), None)
            return True

    # ---- completions ----

    def get_completion(self, todo_id: int, completion_date: date) -> Optional[CompletionEntity]:
        with self._lock:
            cid = self._completion_index.get((todo_id, completion_date))
            if cid is None:
                return None
            return self._completions[cid].copy()  # type: ignore[return-value]

    def list_completions(self, owner: str, completion_date: Optional[date] = None) -> List[CompletionEntity]:
        with self._lock:
            items = [
                c
                for c in self._completions.values()
                if c["owner"] == owner and (completion_date is None or c["completion_date"] == completion_date)
            ]
            return [c.copy() for c in items]  # type: ignore[misc]

    def insert_completion(
        self, todo_id: int, owner: str, completion_date: date, completed_at: datetime
    ) -> CompletionEntity:
        with self._lock:
            key = (todo_id, completion_date)
            existing = self._completion_index.get(key)
            if existing is not None:
                return self._completions[existing].copy()  # type: ignore[return-value]
            entity: CompletionEntity = {
                "id": self._allocate_id(),
                "todo_id": todo_id,
                "owner": owner,
                "completion_date": completion_date,
                "completed_at": completed_at,
            }
            self._completions[entity["id"]] = entity
            self._completion_index[key] = entity["id"]
            return entity.copy()  # type: ignore[return-value]

    def delete_completion(self, completion_id: int) -> bool:
        with self._lock:
            entity = self._completions.pop(completion_id, None)
            if entity is None:
                return False
            self._completion_index.pop((entity["todo_id"], entity["completion_date"]), None)
            return True


# PUBLIC_INTERFACE
@lru_cache(maxsize=1)
def get_repository() -> Repository:
    """
    Factory returning the process-wide repository configured in settings.
    - memory: InMemoryRepository
    - sqlite: SQLiteRepository (standard library sqlite3)
    """
    settings = get_settings()
    if settings.persistence_backend == "sqlite":
        from .db import SQLiteRepository

        return SQLiteRepository(settings.sqlite_db_path)
    logger.info("Using in-memory repository")
    return InMemoryRepository()
