from __future__ import annotations

import logging
from datetime import date
from typing import Dict, List, Mapping, Optional, Tuple

from .clock import Clock
from .errors import DuplicateName, NotFoundOrUnauthorized, ReferentialConflict, Unauthenticated
from .models import CategoryEntity, CompletionEntity, TodoEntity
from .recurrence import Recurrence, is_due_on
from .repositories import Repository
from .schemas import CategoryCreate, CategoryUpdate, TodoCreate, TodoUpdate
from .utils import due_time_sort_key, iter_dates

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES: Tuple[Tuple[str, str, str], ...] = (
    ("Clean Home", "🏠", "#E8D5FF"),
    ("Self-Care", "💆", "#FFD5E8"),
    ("Work", "💼", "#D5E8FF"),
)


def _require_owner(owner: Optional[str]) -> str:
    if owner is None:
        raise Unauthenticated()
    return owner


def _visible(todo: TodoEntity, day: date, category_id: Optional[int]) -> bool:
    if not is_due_on(todo["due_date"], todo["recurrence"], day):
        return False
    return category_id is None or todo["category_id"] == category_id


def _resolve_instance(todo: TodoEntity, completion: Optional[CompletionEntity]) -> TodoEntity:
    """
    Return the instance view of a task. Recurring tasks take their completion state
    from the per-date record; non-recurring tasks keep their stored fields.
    """
    if todo["recurrence"] == Recurrence.NONE.value:
        return todo
    instance = todo.copy()
    instance["completed"] = completion is not None
    instance["completed_at"] = completion["completed_at"] if completion is not None else None
    return instance  # type: ignore[return-value]


# PUBLIC_INTERFACE
class TodoService:
    """
    Recurrence-aware task visibility and completion.

    Queries return empty results when there is no owner; mutations raise
    Unauthenticated. Records of other owners behave exactly like missing ones.
    """

    def __init__(self, repo: Repository, clock: Clock) -> None:
        self._repo = repo
        self._clock = clock

    def _owned_todo(self, owner: str, todo_id: int) -> TodoEntity:
        todo = self._repo.get_todo(todo_id)
        if todo is None or todo["owner"] != owner:
            raise NotFoundOrUnauthorized("Todo not found or unauthorized")
        return todo

    def _check_category(self, owner: str, category_id: int) -> None:
        category = self._repo.get_category(category_id)
        if category is None or category["owner"] != owner:
            raise NotFoundOrUnauthorized("Category not found or unauthorized")

    # ---- queries ----

    def list_for_date(
        self, owner: Optional[str], target_date: date, category_id: Optional[int] = None
    ) -> List[TodoEntity]:
        """
        Task instances visible on target_date, all-day tasks first and the rest by time.
        """
        if owner is None:
            return []

        todos = [t for t in self._repo.list_todos(owner) if _visible(t, target_date, category_id)]
        completions = {c["todo_id"]: c for c in self._repo.list_completions(owner, target_date)}
        instances = [_resolve_instance(t, completions.get(t["id"])) for t in todos]
        instances.sort(key=due_time_sort_key)

        logger.debug("list_for_date owner=%s date=%s count=%d", owner, target_date, len(instances))
        return instances

    def list_for_range(
        self,
        owner: Optional[str],
        start_date: date,
        end_date: date,
        category_id: Optional[int] = None,
    ) -> Dict[date, List[TodoEntity]]:
        """
        Map every date in [start_date, end_date] to the task instances visible that day.
        Completions are loaded once for the owner and looked up per (task, date).
        """
        if owner is None:
            return {}

        todos = self._repo.list_todos(owner)
        completions: Dict[Tuple[int, date], CompletionEntity] = {
            (c["todo_id"], c["completion_date"]): c for c in self._repo.list_completions(owner)
        }

        result: Dict[date, List[TodoEntity]] = {}
        for day in iter_dates(start_date, end_date):
            instances = [
                _resolve_instance(t, completions.get((t["id"], day)))
                for t in todos
                if _visible(t, day, category_id)
            ]
            instances.sort(key=due_time_sort_key)
            result[day] = instances

        logger.debug("list_for_range owner=%s start=%s end=%s days=%d", owner, start_date, end_date, len(result))
        return result

    def get_todo(self, owner: Optional[str], todo_id: int) -> TodoEntity:
        """Return the stored task record (anchor fields, not an instance view)."""
        if owner is None:
            raise NotFoundOrUnauthorized("Todo not found or unauthorized")
        return self._owned_todo(owner, todo_id)

    # ---- mutations ----

    def toggle_completion(self, owner: Optional[str], todo_id: int, day: date) -> TodoEntity:
        """
        Flip completion of one task instance and return the instance view for `day`.

        Non-recurring tasks flip their own completed flag and ignore `day`.
        Recurring tasks add or remove the completion record for (todo_id, day).
        """
        owner = _require_owner(owner)
        todo = self._owned_todo(owner, todo_id)

        if todo["recurrence"] == Recurrence.NONE.value:
            completed = not todo["completed"]
            updated = self._repo.patch_todo(
                todo_id,
                {"completed": completed, "completed_at": self._clock.now() if completed else None},
            )
            if updated is None:
                raise NotFoundOrUnauthorized("Todo not found or unauthorized")
            logger.info("Toggled todo id=%s owner=%s completed=%s", todo_id, owner, completed)
            return updated

        existing = self._repo.get_completion(todo_id, day)
        if existing is not None:
            self._repo.delete_completion(existing["id"])
            completion: Optional[CompletionEntity] = None
        else:
            completion = self._repo.insert_completion(todo_id, owner, day, self._clock.now())

        logger.info(
            "Toggled recurring todo id=%s owner=%s date=%s completed=%s",
            todo_id,
            owner,
            day,
            completion is not None,
        )
        return _resolve_instance(todo, completion)

    def create_todo(self, owner: Optional[str], data: TodoCreate) -> TodoEntity:
        owner = _require_owner(owner)
        if data.category_id is not None:
            self._check_category(owner, data.category_id)

        created = self._repo.insert_todo(
            {
                "owner": owner,
                "title": data.title,
                "emoji": data.emoji,
                "category_id": data.category_id,
                "due_date": data.due_date,
                "due_time": data.due_time,
                "recurrence": Recurrence(data.recurrence).value,
                "completed": False,
                "completed_at": None,
                "created_at": self._clock.now(),
            }
        )
        logger.info("Created todo id=%s owner=%s recurrence=%s", created["id"], owner, created["recurrence"])
        return created

    def update_todo(self, owner: Optional[str], todo_id: int, data: TodoUpdate) -> TodoEntity:
        """
        Apply a partial update. Absent fields stay unchanged; an explicit null clears
        category_id or due_time. Nulls for other fields are ignored.
        """
        owner = _require_owner(owner)
        self._owned_todo(owner, todo_id)

        provided = data.model_fields_set
        fields: Dict[str, object] = {}
        for name in ("title", "emoji", "due_date"):
            value = getattr(data, name)
            if name in provided and value is not None:
                fields[name] = value
        if "recurrence" in provided and data.recurrence is not None:
            fields["recurrence"] = Recurrence(data.recurrence).value
        if "due_time" in provided:
            fields["due_time"] = data.due_time
        if "category_id" in provided:
            if data.category_id is not None:
                self._check_category(owner, data.category_id)
            fields["category_id"] = data.category_id

        updated = self._repo.patch_todo(todo_id, fields)
        if updated is None:
            raise NotFoundOrUnauthorized("Todo not found or unauthorized")
        logger.info("Updated todo id=%s owner=%s fields=%s", todo_id, owner, sorted(fields))
        return updated

    def delete_todo(self, owner: Optional[str], todo_id: int) -> None:
        owner = _require_owner(owner)
        self._owned_todo(owner, todo_id)
        self._repo.delete_todo(todo_id)
        logger.info("Deleted todo id=%s owner=%s", todo_id, owner)


# PUBLIC_INTERFACE
class CategoryService:
    """Category rules: unique names per owner, guarded delete, default seeding."""

    def __init__(self, repo: Repository) -> None:
        self._repo = repo

    def _owned_category(self, owner: str, category_id: int) -> CategoryEntity:
        category = self._repo.get_category(category_id)
        if category is None or category["owner"] != owner:
            raise NotFoundOrUnauthorized("Category not found or unauthorized")
        return category

    def list_categories(self, owner: Optional[str]) -> List[CategoryEntity]:
        if owner is None:
            return []
        return self._repo.list_categories(owner)

    def create_category(self, owner: Optional[str], data: CategoryCreate) -> CategoryEntity:
        owner = _require_owner(owner)
        if self._repo.find_category_by_name(owner, data.name) is not None:
            raise DuplicateName()
        created = self._repo.insert_category(owner, data.name, data.emoji, data.color)
        logger.info("Created category id=%s owner=%s", created["id"], owner)
        return created

    def update_category(self, owner: Optional[str], category_id: int, data: CategoryUpdate) -> CategoryEntity:
        owner = _require_owner(owner)
        current = self._owned_category(owner, category_id)

        fields: Mapping[str, object] = {
            name: getattr(data, name)
            for name in ("name", "emoji", "color")
            if getattr(data, name) is not None
        }
        new_name = fields.get("name")
        if new_name is not None and new_name != current["name"]:
            if self._repo.find_category_by_name(owner, str(new_name)) is not None:
                raise DuplicateName()

        updated = self._repo.patch_category(category_id, fields)
        if updated is None:
            raise NotFoundOrUnauthorized("Category not found or unauthorized")
        logger.info("Updated category id=%s owner=%s fields=%s", category_id, owner, sorted(fields))
        return updated

    def delete_category(self, owner: Optional[str], category_id: int) -> None:
        owner = _require_owner(owner)
        self._owned_category(owner, category_id)
        if self._repo.todo_exists_for_category(owner, category_id):
            raise ReferentialConflict()
        self._repo.delete_category(category_id)
        logger.info("Deleted category id=%s owner=%s", category_id, owner)

    def initialize_defaults(self, owner: Optional[str]) -> List[CategoryEntity]:
        """
        Seed the preset categories for an owner who has none yet. Owners that already
        have categories are left untouched.
        """
        owner = _require_owner(owner)
        existing = self._repo.list_categories(owner)
        if existing:
            return existing

        for name, emoji, color in DEFAULT_CATEGORIES:
            self._repo.insert_category(owner, name, emoji, color)
        logger.info("Seeded %d default categories owner=%s", len(DEFAULT_CATEGORIES), owner)
        return self._repo.list_categories(owner)
