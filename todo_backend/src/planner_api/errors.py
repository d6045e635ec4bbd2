from __future__ import annotations

from typing import Optional


class PlannerError(Exception):
    """Base class for domain errors surfaced to API callers."""

    status_code = 400
    default_message = "Request failed"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    @property
    def error(self) -> str:
        return type(self).__name__


class Unauthenticated(PlannerError):
    """No owner identity is available for a mutation."""

    status_code = 401
    default_message = "Not authenticated"


class NotFoundOrUnauthorized(PlannerError):
    """The referenced record does not exist or belongs to another owner."""

    status_code = 404
    default_message = "Not found or unauthorized"


class DuplicateName(PlannerError):
    status_code = 409
    default_message = "Category with this name already exists"


class ReferentialConflict(PlannerError):
    status_code = 409
    default_message = "Cannot delete category with existing todos"
