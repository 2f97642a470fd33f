"""
Product API Routes

Public catalog reads; writes are restricted to admins.
"""

from fastapi import APIRouter, Depends, Response, status

from ...storage.catalog_store import ProductStore
from ..dependencies import get_product_store
from ..guards import require_admin
from ..schemas import (
    ErrorResponse,
    ProductCreate,
    ProductResponse,
    ProductUpdate,
)


router = APIRouter(prefix="/products", tags=["products"])


@router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
    responses={
        400: {"model": ErrorResponse, "description": "Invalid product data"},
        403: {"model": ErrorResponse, "description": "Admin role required"},
    },
)
def create_product(
    product: ProductCreate,
    store: ProductStore = Depends(get_product_store),
):
    data = product.model_dump()
    return store.create(**data)


@router.get("", response_model=list[ProductResponse])
def list_products(store: ProductStore = Depends(get_product_store)):
    return store.list_all()


@router.get(
    "/{product_id}",
    response_model=ProductResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Product not found"},
    },
)
def get_product(
    product_id: str,
    store: ProductStore = Depends(get_product_store),
):
    return store.get(product_id)


@router.put(
    "/{product_id}",
    response_model=ProductResponse,
    dependencies=[Depends(require_admin)],
    responses={
        403: {"model": ErrorResponse, "description": "Admin role required"},
        404: {"model": ErrorResponse, "description": "Product not found"},
    },
)
def update_product(
    product_id: str,
    updates: ProductUpdate,
    store: ProductStore = Depends(get_product_store),
):
    """Merge the supplied fields onto the product."""
    return store.update(product_id, **updates.model_dump(exclude_unset=True))


@router.delete(
    "/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
def delete_product(
    product_id: str,
    store: ProductStore = Depends(get_product_store),
):
    store.delete(product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
