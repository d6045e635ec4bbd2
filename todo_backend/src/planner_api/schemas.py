from __future__ import annotations

import datetime as _dt
import re
from datetime import date, datetime, time
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .recurrence import Recurrence

# Shared type for incoming due_time which can be a time or an 'HH:mm' string
DueTimeInput = Union[time, str]

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")
_COLOR_RE = re.compile(r"^#(?:[0-9A-Fa-f]{3}|[0-9A-Fa-f]{6})$")


def _parse_due_time(value: Optional[DueTimeInput]) -> Optional[str]:
    """
    Internal helper to normalize due_time input into a zero-padded 'HH:mm' string.
    - None stays None (all-day task).
    - A time instance is formatted as 'HH:mm' (seconds are dropped).
    - A string must look like 'H:mm' or 'HH:mm' with hour 0..23 and minute 0..59.
    Zero padding keeps lexicographic order equal to chronological order.
    """
    if value is None:
        return None

    if isinstance(value, time):
        return value.strftime("%H:%M")

    if isinstance(value, str):
        match = _TIME_RE.match(value.strip())
        if match:
            hour, minute = int(match.group(1)), int(match.group(2))
            if 0 <= hour <= 23 and 0 <= minute <= 59:
                return f"{hour:02d}:{minute:02d}"
        raise ValueError("Invalid due_time format. Use 24-hour 'HH:mm' (e.g., '09:30').")

    raise ValueError("Invalid type for due_time; expected 'HH:mm' string or time.")


def _clean_text(value: str, field: str, max_length: int) -> str:
    s = value.strip()
    if not (1 <= len(s) <= max_length):
        raise ValueError(f"{field} length must be between 1 and {max_length} characters")
    return s


# PUBLIC_INTERFACE
class TodoCreate(BaseModel):
    """
    Schema for creating a new task.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Water the plants",
                "emoji": "🪴",
                "category_id": 1,
                "due_date": "2025-02-01",
                "due_time": "08:30",
                "recurrence": "weekly",
            }
        }
    )

    title: str = Field(..., description="Short title for the task", min_length=1, max_length=200)
    emoji: str = Field(..., description="Emoji shown next to the task", min_length=1, max_length=16)
    category_id: Optional[int] = Field(default=None, description="Optional category of the same owner")
    due_date: date = Field(..., description="Anchor date (YYYY-MM-DD) used for recurrence")
    due_time: Optional[str] = Field(default=None, description="Time of day 'HH:mm'; null means all-day")
    recurrence: Recurrence = Field(default=Recurrence.NONE, description="Recurrence rule")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """
        Strip whitespace and enforce 1..200 length.
        """
        return _clean_text(v, "title", 200)

    @field_validator("due_time", mode="before")
    @classmethod
    def parse_due_time(cls, v: Optional[DueTimeInput]) -> Optional[str]:
        return _parse_due_time(v)


# PUBLIC_INTERFACE
class TodoUpdate(BaseModel):
    """
    Schema for updating an existing task.
    All fields are optional; only provided fields will be updated.
    An explicit null for category_id or due_time clears the field.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Water all the plants",
                "due_time": None,
                "recurrence": "biweekly",
            }
        }
    )

    title: Optional[str] = Field(default=None, description="Short title for the task", min_length=1, max_length=200)
    emoji: Optional[str] = Field(default=None, description="Emoji shown next to the task", min_length=1, max_length=16)
    category_id: Optional[int] = Field(default=None, description="Category id, or null to clear")
    due_date: Optional[date] = Field(default=None, description="Anchor date (YYYY-MM-DD)")
    due_time: Optional[str] = Field(default=None, description="Time of day 'HH:mm', or null for all-day")
    recurrence: Optional[Recurrence] = Field(default=None, description="Recurrence rule")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        """
        If title is provided, strip whitespace and enforce 1..200 length.
        """
        if v is None:
            return v
        return _clean_text(v, "title", 200)

    @field_validator("due_time", mode="before")
    @classmethod
    def parse_due_time(cls, v: Optional[DueTimeInput]) -> Optional[str]:
        return _parse_due_time(v)


# PUBLIC_INTERFACE
class ToggleRequest(BaseModel):
    """
    Body of the toggle endpoint. The date selects the instance of a recurring task;
    when omitted, today's date is used.
    """

    model_config = ConfigDict(json_schema_extra={"example": {"date": "2025-02-01"}})

    date: Optional[_dt.date] = Field(default=None, description="Instance date (YYYY-MM-DD)")


# PUBLIC_INTERFACE
class TodoOut(BaseModel):
    """
    A task instance as returned by the API: task fields plus the completion state
    resolved for the requested date.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 12,
                "title": "Water the plants",
                "emoji": "🪴",
                "category_id": 1,
                "due_date": "2025-02-01",
                "due_time": "08:30",
                "recurrence": "weekly",
                "completed": True,
                "completed_at": "2025-02-08T08:41:10.120000",
                "created_at": "2025-01-25T10:15:30.123456",
            }
        }
    )

    id: int = Field(..., description="Unique identifier of the task")
    title: str = Field(..., description="Short title for the task")
    emoji: str = Field(..., description="Emoji shown next to the task")
    category_id: Optional[int] = Field(default=None, description="Category id, if any")
    due_date: date = Field(..., description="Anchor date")
    due_time: Optional[str] = Field(default=None, description="Time of day 'HH:mm'; null for all-day")
    recurrence: Recurrence = Field(..., description="Recurrence rule")
    completed: bool = Field(..., description="Completion state of this instance")
    completed_at: Optional[datetime] = Field(default=None, description="When this instance was completed")
    created_at: datetime = Field(..., description="Creation timestamp")


# PUBLIC_INTERFACE
class CategoryCreate(BaseModel):
    """
    Schema for creating a new category.
    """

    model_config = ConfigDict(
        json_schema_extra={"example": {"name": "Garden", "emoji": "🌻", "color": "#FFF3C4"}}
    )

    name: str = Field(..., description="Category name, unique per user", min_length=1, max_length=50)
    emoji: str = Field(..., description="Emoji shown on the category pill", min_length=1, max_length=16)
    color: str = Field(..., description="Hex color code, e.g. '#E8D5FF'")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _clean_text(v, "name", 50)

    @field_validator("color")
    @classmethod
    def validate_color(cls, v: str) -> str:
        if not _COLOR_RE.match(v.strip()):
            raise ValueError("color must be a hex code like '#RGB' or '#RRGGBB'")
        return v.strip()


# PUBLIC_INTERFACE
class CategoryUpdate(BaseModel):
    """
    Schema for updating a category. Only provided fields are changed.
    """

    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    emoji: Optional[str] = Field(default=None, min_length=1, max_length=16)
    color: Optional[str] = Field(default=None)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _clean_text(v, "name", 50)

    @field_validator("color")
    @classmethod
    def validate_color(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        if not _COLOR_RE.match(v.strip()):
            raise ValueError("color must be a hex code like '#RGB' or '#RRGGBB'")
        return v.strip()


# PUBLIC_INTERFACE
class CategoryOut(BaseModel):
    """
    Schema returned by the API for a category.
    """

    id: int = Field(..., description="Unique identifier of the category")
    name: str = Field(..., description="Category name")
    emoji: str = Field(..., description="Category emoji")
    color: str = Field(..., description="Hex color code")
