"""
Order Transaction Manager

Creates an order header and its line items as one unit of work and serves
the plain single-row operations on existing orders.

Design Decisions:
1. Totals are always computed here from the submitted line items
2. Header insert, item inserts and the final re-read share one transaction
3. Status changes follow ALLOWED_TRANSITIONS
4. Client unit prices are trusted; product ids are only checked when
   verify_products is enabled
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional, Union

from loguru import logger
from sqlalchemy.orm import selectinload

from ..exceptions import BadRequestError, InternalError, NotFoundError, StorefrontException
from .catalog_store import ProductStore
from .database import Database
from .models import (
    OrderItemModel,
    OrderModel,
    OrderStatus,
    PaymentMethod,
    utcnow,
)

ORDER_FIELDS = {"shipping_address", "payment_method"}

ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

CENTS = Decimal("0.01")


@dataclass
class LineItem:
    """One product + quantity + unit price entry of an order request."""

    product_id: str
    quantity: int
    price: Decimal

    @classmethod
    def coerce(cls, item: Union["LineItem", dict, object]) -> "LineItem":
        """Accept a LineItem, a dict or any object with matching attributes."""
        if isinstance(item, cls):
            return item
        if isinstance(item, dict):
            get = item.get
        else:
            def get(key):
                return getattr(item, key, None)
        return cls(
            product_id=str(get("product_id")),
            quantity=int(get("quantity")),
            price=Decimal(str(get("price"))),
        )


def compute_total(items: Iterable[LineItem]) -> Decimal:
    """Sum of price * quantity, rounded to cents."""
    total = sum((item.price * item.quantity for item in items), Decimal("0"))
    return total.quantize(CENTS)


def check_transition(current: str, new: str) -> None:
    """
    Raise if an order may not move from current to new status.

    Re-setting the current status is allowed and changes nothing.
    """
    current_status = OrderStatus(current)
    new_status = OrderStatus(new)
    if new_status == current_status:
        return
    if new_status not in ALLOWED_TRANSITIONS[current_status]:
        raise BadRequestError(
            "Invalid status transition",
            detail=f"Cannot move order from '{current_status.value}' to '{new_status.value}'",
        )


@dataclass
class StoredOrderItem:
    """Line item data."""

    id: str
    order_id: str
    product_id: str
    quantity: int
    price: Decimal

    @classmethod
    def from_model(cls, model: OrderItemModel) -> "StoredOrderItem":
        return cls(
            id=model.id,
            order_id=model.order_id,
            product_id=model.product_id,
            quantity=model.quantity,
            price=model.price,
        )


@dataclass
class StoredOrder:
    """Order header plus its items."""

    id: str
    user_id: int
    total_amount: Decimal
    status: str
    shipping_address: str
    payment_method: str
    order_date: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    delivery_date: Optional[datetime] = None
    items: list[StoredOrderItem] = field(default_factory=list)

    @classmethod
    def from_model(cls, model: OrderModel) -> "StoredOrder":
        return cls(
            id=model.id,
            user_id=model.user_id,
            total_amount=model.total_amount,
            status=model.status,
            shipping_address=model.shipping_address,
            payment_method=model.payment_method,
            order_date=model.order_date,
            updated_at=model.updated_at,
            delivery_date=model.delivery_date,
            items=[StoredOrderItem.from_model(i) for i in model.items],
        )


class OrderManager:
    """
    Order persistence with a transactional create.

    Usage:
        manager = OrderManager(database)
        order = manager.create_order(
            user_id=7,
            shipping_address="123 Main Street",
            payment_method="credit_card",
            line_items=[{"product_id": "p1", "quantity": 2, "price": "10.00"}],
        )
    """

    def __init__(
        self,
        database: Database,
        product_store: Optional[ProductStore] = None,
        verify_products: bool = False,
    ):
        """
        Initialize manager.

        Args:
            database: Shared database
            product_store: Needed when verify_products is on
            verify_products: Reject line items whose product does not exist
        """
        if verify_products and product_store is None:
            raise ValueError("verify_products requires a product_store")

        self.database = database
        self.product_store = product_store
        self.verify_products = verify_products

    def create_order(
        self,
        user_id: int,
        shipping_address: str,
        payment_method: Union[PaymentMethod, str],
        line_items: Iterable,
    ) -> StoredOrder:
        """
        Create an order and its line items atomically.

        Args:
            user_id: Owning user
            shipping_address: Delivery address
            payment_method: One of PaymentMethod
            line_items: Items with product_id, quantity, price

        Returns:
            The persisted order with its items

        Raises:
            BadRequestError: Unknown product ids (verify_products only)
            InternalError: Any datastore failure; nothing is persisted
        """
        items = [LineItem.coerce(item) for item in line_items]
        total_amount = compute_total(items)
        payment_method = PaymentMethod(payment_method).value

        logger.info(
            f"Creating order: user={user_id}, items={len(items)}, total={total_amount}"
        )

        if self.verify_products:
            missing = self.product_store.missing_ids(i.product_id for i in items)
            if missing:
                raise BadRequestError(
                    "Unknown product",
                    detail=f"No product with id: {', '.join(sorted(missing))}",
                )

        try:
            with self.database.get_session() as session, session.begin():
                order = OrderModel(
                    user_id=user_id,
                    total_amount=total_amount,
                    status=OrderStatus.PENDING.value,
                    shipping_address=shipping_address,
                    payment_method=payment_method,
                )
                session.add(order)
                session.flush()

                for line_number, item in enumerate(items):
                    session.add(OrderItemModel(
                        order_id=order.id,
                        product_id=item.product_id,
                        line_number=line_number,
                        quantity=item.quantity,
                        price=item.price,
                    ))
                    session.flush()

                full_order = session.query(OrderModel).options(
                    selectinload(OrderModel.items),
                ).filter(
                    OrderModel.id == order.id,
                ).one()

                created = StoredOrder.from_model(full_order)

        except StorefrontException:
            raise
        except Exception as e:
            logger.error(f"Order creation rolled back: {type(e).__name__}: {e}")
            raise InternalError("Failed to create order", cause=e) from e

        logger.info(f"Created order {created.id}")
        return created

    def list_orders(
        self,
        status: Optional[Union[OrderStatus, str]] = None,
        user_id: Optional[int] = None,
        page: int = 1,
        limit: int = 10,
    ) -> list[StoredOrder]:
        """
        List orders, newest first.

        Args:
            status: Filter by status
            user_id: Filter by owner
            page: Page number (1-based)
            limit: Items per page
        """
        logger.info(f"Listing orders: status={status}, user={user_id}, page={page}")

        offset = (page - 1) * limit

        with self.database.get_session() as session:
            query = session.query(OrderModel).options(selectinload(OrderModel.items))

            if status:
                query = query.filter(OrderModel.status == OrderStatus(status).value)

            if user_id is not None:
                query = query.filter(OrderModel.user_id == user_id)

            orders = query.order_by(
                OrderModel.order_date.desc(),
                OrderModel.id.asc(),
            ).offset(offset).limit(limit).all()

            return [StoredOrder.from_model(o) for o in orders]

    def get(self, order_id: str) -> StoredOrder:
        """
        Get order by ID.

        Raises:
            NotFoundError: No such order
        """
        with self.database.get_session() as session:
            order = session.get(OrderModel, order_id)
            if order is None:
                raise NotFoundError("Order", order_id)
            return StoredOrder.from_model(order)

    def update(self, order_id: str, **updates) -> StoredOrder:
        """
        Merge header fields onto an order.

        Line items are immutable, so the total is left as created. A status
        in updates goes through the same transition check as update_status.

        Raises:
            NotFoundError: No such order
            BadRequestError: Illegal status transition
        """
        logger.info(f"Updating order: {order_id}")

        with self.database.get_session() as session:
            order = session.get(OrderModel, order_id)
            if order is None:
                raise NotFoundError("Order", order_id)

            status = updates.pop("status", None)
            if status is not None:
                self._apply_status(order, status)

            for key, value in updates.items():
                if key in ORDER_FIELDS and value is not None:
                    if key == "payment_method":
                        value = PaymentMethod(value).value
                    setattr(order, key, value)

            order.updated_at = utcnow()
            session.commit()
            session.refresh(order)

            return StoredOrder.from_model(order)

    def update_status(self, order_id: str, status: Union[OrderStatus, str]) -> StoredOrder:
        """
        Move an order to a new status.

        Raises:
            NotFoundError: No such order
            BadRequestError: Illegal status transition
        """
        logger.info(f"Updating order status: {order_id} -> {status}")

        with self.database.get_session() as session:
            order = session.get(OrderModel, order_id)
            if order is None:
                raise NotFoundError("Order", order_id)

            self._apply_status(order, status)
            order.updated_at = utcnow()
            session.commit()
            session.refresh(order)

            return StoredOrder.from_model(order)

    def remove(self, order_id: str) -> dict:
        """
        Delete an order and its items.

        Raises:
            NotFoundError: No such order
        """
        logger.info(f"Deleting order: {order_id}")

        with self.database.get_session() as session:
            order = session.get(OrderModel, order_id)
            if order is None:
                raise NotFoundError("Order", order_id)
            session.delete(order)
            session.commit()

        return {"message": f"Order with ID {order_id} cancelled successfully"}

    @staticmethod
    def _apply_status(order: OrderModel, status: Union[OrderStatus, str]) -> None:
        new_status = OrderStatus(status)
        check_transition(order.status, new_status)
        if new_status == OrderStatus.DELIVERED and order.delivery_date is None:
            order.delivery_date = utcnow()
        order.status = new_status.value
