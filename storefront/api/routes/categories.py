"""
Category API Routes
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status

from ...storage.catalog_store import CategoryStore
from ..dependencies import get_category_store
from ..guards import require_admin
from ..schemas import (
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
    ErrorResponse,
)


router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=list[CategoryResponse])
def list_categories(
    is_active: Optional[bool] = Query(None, alias="isActive", description="Filter by active flag"),
    search: Optional[str] = Query(None, description="Match in name or description"),
    store: CategoryStore = Depends(get_category_store),
):
    return store.list_categories(is_active=is_active, search=search)


@router.get(
    "/{category_id}",
    response_model=CategoryResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Category not found"},
    },
)
def get_category(
    category_id: int,
    store: CategoryStore = Depends(get_category_store),
):
    return store.get(category_id)


@router.post(
    "",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_category(
    category: CategoryCreate,
    store: CategoryStore = Depends(get_category_store),
):
    return store.create(**category.model_dump())


@router.put(
    "/{category_id}",
    response_model=CategoryResponse,
    dependencies=[Depends(require_admin)],
    responses={
        404: {"model": ErrorResponse, "description": "Category not found"},
    },
)
def update_category(
    category_id: int,
    updates: CategoryUpdate,
    store: CategoryStore = Depends(get_category_store),
):
    return store.update(category_id, **updates.model_dump(exclude_unset=True))


@router.delete(
    "/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
    responses={
        404: {"model": ErrorResponse, "description": "Category not found"},
    },
)
def delete_category(
    category_id: int,
    store: CategoryStore = Depends(get_category_store),
):
    store.delete(category_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
