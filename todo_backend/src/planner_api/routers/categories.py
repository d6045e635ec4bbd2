from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, status

from ..auth import get_current_owner
from ..repositories import Repository, get_repository
from ..schemas import CategoryCreate, CategoryOut, CategoryUpdate
from ..services import CategoryService

router = APIRouter(
    prefix="/api/v1/categories",
    tags=["categories"],
)


def _get_service(repo: Repository = Depends(get_repository)) -> CategoryService:
    return CategoryService(repo)


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=List[CategoryOut],
    summary="List Categories",
    description="List the caller's categories. Unauthenticated callers get an empty list.",
)
def list_categories(
    owner: Optional[str] = Depends(get_current_owner),
    service: CategoryService = Depends(_get_service),
) -> List[CategoryOut]:
    return [CategoryOut(**c) for c in service.list_categories(owner)]  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=CategoryOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Category",
    description="Create a category. Names are unique per user.",
    responses={
        201: {"description": "Category created"},
        401: {"description": "Not authenticated"},
        409: {"description": "Category with this name already exists"},
    },
)
def create_category(
    payload: CategoryCreate,
    owner: Optional[str] = Depends(get_current_owner),
    service: CategoryService = Depends(_get_service),
) -> CategoryOut:
    return CategoryOut(**service.create_category(owner, payload))  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.post(
    "/defaults",
    response_model=List[CategoryOut],
    summary="Initialize Default Categories",
    description=(
        "Seed the preset categories (Clean Home, Self-Care, Work) when the caller has no "
        "categories yet. Returns the caller's categories either way."
    ),
    responses={401: {"description": "Not authenticated"}},
)
def initialize_defaults(
    owner: Optional[str] = Depends(get_current_owner),
    service: CategoryService = Depends(_get_service),
) -> List[CategoryOut]:
    return [CategoryOut(**c) for c in service.initialize_defaults(owner)]  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.patch(
    "/{category_id}",
    response_model=CategoryOut,
    summary="Update Category",
    description="Partially update a category.",
    responses={
        401: {"description": "Not authenticated"},
        404: {"description": "Category not found or unauthorized"},
        409: {"description": "Category with this name already exists"},
    },
)
def patch_category(
    category_id: int,
    payload: CategoryUpdate,
    owner: Optional[str] = Depends(get_current_owner),
    service: CategoryService = Depends(_get_service),
) -> CategoryOut:
    return CategoryOut(**service.update_category(owner, category_id, payload))  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.delete(
    "/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Category",
    description="Delete a category that no task references.",
    responses={
        204: {"description": "Category deleted"},
        401: {"description": "Not authenticated"},
        404: {"description": "Category not found or unauthorized"},
        409: {"description": "Category is still used by tasks"},
    },
)
def delete_category(
    category_id: int,
    owner: Optional[str] = Depends(get_current_owner),
    service: CategoryService = Depends(_get_service),
) -> None:
    service.delete_category(owner, category_id)
    return None
