from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Generator, List, Mapping, Optional

from .errors import DuplicateName
from .models import CategoryEntity, CompletionEntity, TodoEntity
from .repositories import CATEGORY_PATCH_FIELDS, TODO_PATCH_FIELDS, Repository, _check_patch

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Tables:
    categories: str = "categories"
    todos: str = "todos"
    completions: str = "todo_completions"


_T = _Tables()


def _to_db(value: Any) -> Any:
    if isinstance(value, bool):
        return 1 if value else 0
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def _parse_dt(s: Optional[str]) -> Optional[datetime]:
    if s is None:
        return None
    return datetime.fromisoformat(s)


class SQLiteRepository(Repository):
    """
    Lightweight SQLite repository implementing the Repository interface.

    Each call opens its own connection, so the repository can be shared across
    request threads. Uniqueness of (todo_id, completion_date) is enforced by a
    unique index.
    """

    backend_name = "sqlite"

    def __init__(self, db_path: str) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self._init_db()
        logger.info("SQLite repository ready db=%s", db_path)

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        conn = sqlite3.connect(self._db_path, timeout=30.0)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_T.categories} (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    owner TEXT NOT NULL,
                    name TEXT NOT NULL,
                    emoji TEXT NOT NULL,
                    color TEXT NOT NULL
                )
                """
            )
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_T.todos} (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    owner TEXT NOT NULL,
                    title TEXT NOT NULL,
                    emoji TEXT NOT NULL,
                    category_id INTEGER NULL,
                    due_date TEXT NOT NULL,
                    due_time TEXT NULL,
                    recurrence TEXT NOT NULL DEFAULT 'none',
                    completed INTEGER NOT NULL DEFAULT 0,
                    completed_at TEXT NULL,
                    created_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_T.completions} (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    todo_id INTEGER NOT NULL,
                    owner TEXT NOT NULL,
                    completion_date TEXT NOT NULL,
                    completed_at TEXT NOT NULL
                )
                """
            )
            for name, table, cols in (
                ("idx_categories_owner", _T.categories, "owner"),
                ("idx_todos_owner", _T.todos, "owner"),
                ("idx_todos_owner_due_date", _T.todos, "owner, due_date"),
                ("idx_todos_owner_category", _T.todos, "owner, category_id"),
                ("idx_todos_owner_completed", _T.todos, "owner, completed"),
                ("idx_completions_owner_date", _T.completions, "owner, completion_date"),
            ):
                conn.execute(f"CREATE INDEX IF NOT EXISTS {name} ON {table}({cols})")
            conn.execute(
                f"CREATE UNIQUE INDEX IF NOT EXISTS idx_categories_owner_name_unique "
                f"ON {_T.categories}(owner, name)"
            )
            conn.execute(
                f"CREATE UNIQUE INDEX IF NOT EXISTS idx_completions_todo_date "
                f"ON {_T.completions}(todo_id, completion_date)"
            )

    # ---- row mapping ----

    @staticmethod
    def _row_to_category(row: sqlite3.Row) -> CategoryEntity:
        return {
            "id": int(row["id"]),
            "owner": str(row["owner"]),
            "name": str(row["name"]),
            "emoji": str(row["emoji"]),
            "color": str(row["color"]),
        }

    @staticmethod
    def _row_to_todo(row: sqlite3.Row) -> TodoEntity:
        return {
            "id": int(row["id"]),
            "owner": str(row["owner"]),
            "title": str(row["title"]),
            "emoji": str(row["emoji"]),
            "category_id": int(row["category_id"]) if row["category_id"] is not None else None,
            "due_date": date.fromisoformat(row["due_date"]),
            "due_time": row["due_time"],
            "recurrence": str(row["recurrence"]),
            "completed": bool(row["completed"]),
            "completed_at": _parse_dt(row["completed_at"]),
            "created_at": _parse_dt(row["created_at"]),  # type: ignore[typeddict-item]
        }

    @staticmethod
    def _row_to_completion(row: sqlite3.Row) -> CompletionEntity:
        return {
            "id": int(row["id"]),
            "todo_id": int(row["todo_id"]),
            "owner": str(row["owner"]),
            "completion_date": date.fromisoformat(row["completion_date"]),
            "completed_at": _parse_dt(row["completed_at"]),  # type: ignore[typeddict-item]
        }

    def _patch(self, table: str, row_id: int, fields: Mapping[str, Any]) -> Optional[sqlite3.Row]:
        with self._conn() as conn:
            if fields:
                assignments = ", ".join(f"{name} = ?" for name in fields)
                conn.execute(
                    f"UPDATE {table} SET {assignments} WHERE id = ?",
                    [*(_to_db(v) for v in fields.values()), row_id],
                )
            return conn.execute(f"SELECT * FROM {table} WHERE id = ?", (row_id,)).fetchone()

    # ---- categories ----

    def insert_category(self, owner: str, name: str, emoji: str, color: str) -> CategoryEntity:
        with self._conn() as conn:
            try:
                cur = conn.execute(
                    f"INSERT INTO {_T.categories} (owner, name, emoji, color) VALUES (?, ?, ?, ?)",
                    (owner, name, emoji, color),
                )
            except sqlite3.IntegrityError as exc:
                raise DuplicateName() from exc
            row = conn.execute(f"SELECT * FROM {_T.categories} WHERE id = ?", (cur.lastrowid,)).fetchone()
            assert row is not None
            return self._row_to_category(row)

    def get_category(self, category_id: int) -> Optional[CategoryEntity]:
        with self._conn() as conn:
            row = conn.execute(f"SELECT * FROM {_T.categories} WHERE id = ?", (category_id,)).fetchone()
            return self._row_to_category(row) if row else None

    def find_category_by_name(self, owner: str, name: str) -> Optional[CategoryEntity]:
        with self._conn() as conn:
            row = conn.execute(
                f"SELECT * FROM {_T.categories} WHERE owner = ? AND name = ? LIMIT 1", (owner, name)
            ).fetchone()
            return self._row_to_category(row) if row else None

    def list_categories(self, owner: str) -> List[CategoryEntity]:
        with self._conn() as conn:
            rows = conn.execute(
                f"SELECT * FROM {_T.categories} WHERE owner = ? ORDER BY id", (owner,)
            ).fetchall()
            return [self._row_to_category(r) for r in rows]

    def patch_category(self, category_id: int, fields: Mapping[str, Any]) -> Optional[CategoryEntity]:
        _check_patch(fields, CATEGORY_PATCH_FIELDS)
        try:
            row = self._patch(_T.categories, category_id, fields)
        except sqlite3.IntegrityError as exc:
            raise DuplicateName() from exc
        return self._row_to_category(row) if row else None

    def delete_category(self, category_id: int) -> bool:
        with self._conn() as conn:
            cur = conn.execute(f"DELETE FROM {_T.categories} WHERE id = ?", (category_id,))
            return cur.rowcount > 0

    # ---- todos ----

    def insert_todo(self, record: Mapping[str, Any]) -> TodoEntity:
        columns = list(record)
        with self._conn() as conn:
            cur = conn.execute(
                f"INSERT INTO {_T.todos} ({', '.join(columns)}) VALUES ({', '.join('?' for _ in columns)})",
                [_to_db(record[c]) for c in columns],
            )
            row = conn.execute(f"SELECT * FROM {_T.todos} WHERE id = ?", (cur.lastrowid,)).fetchone()
            assert row is not None
            return self._row_to_todo(row)

    def get_todo(self, todo_id: int) -> Optional[TodoEntity]:
        with self._conn() as conn:
            row = conn.execute(f"SELECT * FROM {_T.todos} WHERE id = ?", (todo_id,)).fetchone()
            return self._row_to_todo(row) if row else None

    def list_todos(self, owner: str) -> List[TodoEntity]:
        with self._conn() as conn:
            rows = conn.execute(f"SELECT * FROM {_T.todos} WHERE owner = ? ORDER BY id", (owner,)).fetchall()
            return [self._row_to_todo(r) for r in rows]

    def todo_exists_for_category(self, owner: str, category_id: int) -> bool:
        with self._conn() as conn:
            row = conn.execute(
                f"SELECT 1 FROM {_T.todos} WHERE owner = ? AND category_id = ? LIMIT 1",
                (owner, category_id),
            ).fetchone()
            return row is not None

    def patch_todo(self, todo_id: int, fields: Mapping[str, Any]) -> Optional[TodoEntity]:
        _check_patch(fields, TODO_PATCH_FIELDS)
        row = self._patch(_T.todos, todo_id, fields)
        return self._row_to_todo(row) if row else None

    def delete_todo(self, todo_id: int) -> bool:
        with self._conn() as conn:
            cur = conn.execute(f"DELETE FROM {_T.todos} WHERE id = ?", (todo_id,))
            if cur.rowcount == 0:
                return False
            conn.execute(f"DELETE FROM {_T.completions} WHERE todo_id = ?", (todo_id,))
            return True

    # ---- completions ----

    def get_completion(self, todo_id: int, completion_date: date) -> Optional[CompletionEntity]:
        with self._conn() as conn:
            row = conn.execute(
                f"SELECT * FROM {_T.completions} WHERE todo_id = ? AND completion_date = ?",
                (todo_id, completion_date.isoformat()),
            ).fetchone()
            return self._row_to_completion(row) if row else None

    def list_completions(self, owner: str, completion_date: Optional[date] = None) -> List[CompletionEntity]:
        sql = f"SELECT * FROM {_T.completions} WHERE owner = ?"
        params: list = [owner]
        if completion_date is not None:
            sql += " AND completion_date = ?"
            params.append(completion_date.isoformat())
        with self._conn() as conn:
            return [self._row_to_completion(r) for r in conn.execute(sql, params).fetchall()]

    def insert_completion(
        self, todo_id: int, owner: str, completion_date: date, completed_at: datetime
    ) -> CompletionEntity:
        day = completion_date.isoformat()
        with self._conn() as conn:
            conn.execute(
                f"""
                INSERT INTO {_T.completions} (todo_id, owner, completion_date, completed_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(todo_id, completion_date) DO NOTHING
                """,
                (todo_id, owner, day, completed_at.isoformat()),
            )
            row = conn.execute(
                f"SELECT * FROM {_T.completions} WHERE todo_id = ? AND completion_date = ?",
                (todo_id, day),
            ).fetchone()
            assert row is not None
            return self._row_to_completion(row)

    def delete_completion(self, completion_id: int) -> bool:
        with self._conn() as conn:
            cur = conn.execute(f"DELETE FROM {_T.completions} WHERE id = ?", (completion_id,))
            return cur.rowcount > 0
