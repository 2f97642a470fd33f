"""
Order API Routes

Order creation runs as a single transaction in OrderManager; every other
route is a plain single-row operation.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from loguru import logger

from ...storage.models import OrderStatus
from ...storage.order_manager import OrderManager
from ...storage.user_store import StoredUser
from ..dependencies import get_order_manager
from ..guards import require_user
from ..schemas import (
    ErrorResponse,
    MessageResponse,
    OrderCreate,
    OrderResponse,
    OrderStatusUpdate,
    OrderUpdate,
)


router = APIRouter(
    prefix="/orders",
    tags=["orders"],
    dependencies=[Depends(require_user)],
)


@router.post(
    "",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid order data"},
        500: {"model": ErrorResponse, "description": "Order could not be stored"},
    },
)
def create_order(
    order: OrderCreate,
    current_user: StoredUser = Depends(require_user),
    manager: OrderManager = Depends(get_order_manager),
):
    """
    Place an order.

    The header and every line item are written in one transaction; the
    total is computed from the submitted items.
    """
    user_id = order.user_id if order.user_id is not None else current_user.id

    return manager.create_order(
        user_id=user_id,
        shipping_address=order.shipping_address,
        payment_method=order.payment_method,
        line_items=order.order_items,
    )


@router.get("", response_model=list[OrderResponse])
def list_orders(
    status_filter: Optional[OrderStatus] = Query(None, alias="status", description="Filter by status"),
    user_id: Optional[int] = Query(None, alias="userId", description="Filter by owner"),
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(10, ge=1, le=100, description="Items per page"),
    manager: OrderManager = Depends(get_order_manager),
):
    return manager.list_orders(status=status_filter, user_id=user_id, page=page, limit=limit)


@router.get(
    "/{order_id}",
    response_model=OrderResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Order not found"},
    },
)
def get_order(
    order_id: str,
    manager: OrderManager = Depends(get_order_manager),
):
    return manager.get(order_id)


@router.patch(
    "/{order_id}",
    response_model=OrderResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Illegal status transition"},
        404: {"model": ErrorResponse, "description": "Order not found"},
    },
)
def update_order(
    order_id: str,
    updates: OrderUpdate,
    manager: OrderManager = Depends(get_order_manager),
):
    """Update shipping address, payment method or status."""
    return manager.update(order_id, **updates.model_dump(exclude_unset=True))


@router.patch(
    "/{order_id}/status",
    response_model=OrderResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Illegal status transition"},
        404: {"model": ErrorResponse, "description": "Order not found"},
    },
)
def update_order_status(
    order_id: str,
    body: OrderStatusUpdate,
    manager: OrderManager = Depends(get_order_manager),
):
    return manager.update_status(order_id, body.status)


@router.delete(
    "/{order_id}",
    response_model=MessageResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Order not found"},
    },
)
def delete_order(
    order_id: str,
    current_user: StoredUser = Depends(require_user),
    manager: OrderManager = Depends(get_order_manager),
):
    logger.info(f"User {current_user.id} deleting order {order_id}")
    return manager.remove(order_id)
