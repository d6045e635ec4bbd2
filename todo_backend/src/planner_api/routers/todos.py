from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..auth import get_current_owner
from ..clock import Clock, get_clock
from ..repositories import Repository, get_repository
from ..schemas import TodoCreate, TodoOut, TodoUpdate, ToggleRequest
from ..services import TodoService
from ..settings import get_settings

router = APIRouter(
    prefix="/api/v1/todos",
    tags=["todos"],
)


def _get_service(
    repo: Repository = Depends(get_repository),
    clock: Clock = Depends(get_clock),
) -> TodoService:
    """
    Dependency building the service from the configured repository and clock.
    """
    return TodoService(repo, clock)


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=List[TodoOut],
    summary="List Todos For Date",
    description=(
        "List the task instances visible on one date.\n\n"
        "Query parameters:\n"
        "- date: day to show (YYYY-MM-DD); defaults to today\n"
        "- category_id: only tasks in this category\n\n"
        "All-day tasks come first, then timed tasks by time. Recurring tasks report "
        "the completion state of that date. Unauthenticated callers get an empty list."
    ),
    responses={200: {"description": "Instances retrieved successfully"}},
)
def list_todos(
    day: Optional[date] = Query(None, alias="date", description="Day to show (YYYY-MM-DD)"),
    category_id: Optional[int] = Query(None, description="Filter by category id"),
    owner: Optional[str] = Depends(get_current_owner),
    clock: Clock = Depends(get_clock),
    service: TodoService = Depends(_get_service),
) -> List[TodoOut]:
    """
    List task instances for a single date.
    """
    target = day or clock.today()
    items = service.list_for_date(owner, target, category_id)
    return [TodoOut(**it) for it in items]  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.get(
    "/range",
    response_model=Dict[str, List[TodoOut]],
    summary="List Todos For Date Range",
    description=(
        "Map each date between start_date and end_date (inclusive) to the task instances "
        "visible that day. Used by the week view. A reversed range yields an empty mapping."
    ),
    responses={
        200: {"description": "Instances retrieved successfully"},
        400: {"description": "Date range longer than the configured maximum"},
    },
)
def list_todos_by_range(
    start_date: date = Query(..., description="First day (YYYY-MM-DD)"),
    end_date: date = Query(..., description="Last day, inclusive (YYYY-MM-DD)"),
    category_id: Optional[int] = Query(None, description="Filter by category id"),
    owner: Optional[str] = Depends(get_current_owner),
    service: TodoService = Depends(_get_service),
) -> Dict[str, List[TodoOut]]:
    """
    List task instances per date over a range.
    """
    # Without an owner nothing is visible, so the cap only applies to real lookups
    max_days = get_settings().max_range_days
    if owner is not None and (end_date - start_date).days + 1 > max_days:
        raise HTTPException(status_code=400, detail=f"date range must not exceed {max_days} days")

    by_date = service.list_for_range(owner, start_date, end_date, category_id)
    return {
        day.isoformat(): [TodoOut(**it) for it in items]  # type: ignore[arg-type]
        for day, items in by_date.items()
    }


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=TodoOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Todo",
    description="Create a new task and return it.",
    responses={
        201: {"description": "Todo created successfully"},
        401: {"description": "Not authenticated"},
        404: {"description": "Category not found or unauthorized"},
    },
)
def create_todo(
    payload: TodoCreate,
    owner: Optional[str] = Depends(get_current_owner),
    service: TodoService = Depends(_get_service),
) -> TodoOut:
    """
    Create a new task.
    """
    created = service.create_todo(owner, payload)
    return TodoOut(**created)  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.get(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Get Todo",
    description="Get the stored task record by ID.",
    responses={
        200: {"description": "Todo found"},
        404: {"description": "Todo not found or unauthorized"},
    },
)
def get_todo(
    todo_id: int,
    owner: Optional[str] = Depends(get_current_owner),
    service: TodoService = Depends(_get_service),
) -> TodoOut:
    """
    Retrieve a single task by its ID.
    """
    return TodoOut(**service.get_todo(owner, todo_id))  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.patch(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Update Todo",
    description=(
        "Partially update a task. Omitted fields are left unchanged; an explicit null "
        "clears category_id or due_time."
    ),
    responses={
        200: {"description": "Todo updated"},
        401: {"description": "Not authenticated"},
        404: {"description": "Todo or category not found or unauthorized"},
    },
)
def patch_todo(
    todo_id: int,
    payload: TodoUpdate,
    owner: Optional[str] = Depends(get_current_owner),
    service: TodoService = Depends(_get_service),
) -> TodoOut:
    """
    Partial update of a task.
    """
    updated = service.update_todo(owner, todo_id, payload)
    return TodoOut(**updated)  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.post(
    "/{todo_id}/toggle",
    response_model=TodoOut,
    summary="Toggle Completion",
    description=(
        "Toggle completion of a task instance. Recurring tasks are toggled for the given "
        "date only (default: today); non-recurring tasks flip their own flag."
    ),
    responses={
        200: {"description": "Completion toggled"},
        401: {"description": "Not authenticated"},
        404: {"description": "Todo not found or unauthorized"},
    },
)
def toggle_todo(
    todo_id: int,
    payload: Optional[ToggleRequest] = None,
    owner: Optional[str] = Depends(get_current_owner),
    clock: Clock = Depends(get_clock),
    service: TodoService = Depends(_get_service),
) -> TodoOut:
    """
    Toggle completion and return the instance for the toggled date.
    """
    day = payload.date if payload is not None and payload.date is not None else clock.today()
    toggled = service.toggle_completion(owner, todo_id, day)
    return TodoOut(**toggled)  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.delete(
    "/{todo_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Todo",
    description="Delete a task and all of its per-date completions.",
    responses={
        204: {"description": "Todo deleted"},
        401: {"description": "Not authenticated"},
        404: {"description": "Todo not found or unauthorized"},
    },
)
def delete_todo(
    todo_id: int,
    owner: Optional[str] = Depends(get_current_owner),
    service: TodoService = Depends(_get_service),
) -> None:
    """
    Delete a task. Returns 204 on success.
    """
    service.delete_todo(owner, todo_id)
    return None
