from __future__ import annotations

from datetime import date, datetime
from typing import Optional, TypedDict


# PUBLIC_INTERFACE
class CategoryEntity(TypedDict):
    """
    A category owned by a single user.

    Fields:
    - id: Unique integer identifier
    - owner: Opaque owner identity
    - name: Display name, unique per owner (case-sensitive)
    - emoji: Display emoji
    - color: Hex color code, e.g. '#E8D5FF'
    """

    id: int
    owner: str
    name: str
    emoji: str
    color: str


# PUBLIC_INTERFACE
class TodoEntity(TypedDict):
    """
    A task anchor record.

    Fields:
    - id: Unique integer identifier
    - owner: Opaque owner identity
    - title, emoji: Display strings
    - category_id: Optional reference to a category of the same owner
    - due_date: Anchor date for recurrence
    - due_time: 'HH:mm' or None for all-day tasks
    - recurrence: One of the Recurrence values
    - completed, completed_at: Only authoritative for non-recurring tasks
    - created_at: Creation timestamp
    """

    id: int
    owner: str
    title: str
    emoji: str
    category_id: Optional[int]
    due_date: date
    due_time: Optional[str]
    recurrence: str
    completed: bool
    completed_at: Optional[datetime]
    created_at: datetime


# PUBLIC_INTERFACE
class CompletionEntity(TypedDict):
    """
    Completion of one instance of a recurring task.

    Existence of a record for (todo_id, completion_date) means that instance is done.
    """

    id: int
    todo_id: int
    owner: str
    completion_date: date
    completed_at: datetime
