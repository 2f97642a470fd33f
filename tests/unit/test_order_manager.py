"""
Unit tests for the order transaction manager.
"""

from decimal import Decimal

import pytest

from storefront.exceptions import BadRequestError, InternalError, NotFoundError
from storefront.storage.models import OrderItemModel, OrderModel, OrderStatus
from storefront.storage.order_manager import (
    LineItem,
    OrderManager,
    check_transition,
    compute_total,
)


def make_items(*specs):
    return [
        {"product_id": product_id, "quantity": quantity, "price": price}
        for product_id, quantity, price in specs
    ]


class TestTotals:
    """Tests for compute_total and LineItem.coerce."""

    def test_total_of_two_items(self):
        items = [LineItem.coerce(i) for i in make_items(("a", 2, "10.00"), ("b", 1, "5.00"))]

        assert compute_total(items) == Decimal("25.00")

    def test_total_has_no_float_drift(self):
        items = [LineItem.coerce(i) for i in make_items(("a", 3, "0.10"))]

        assert compute_total(items) == Decimal("0.30")

    def test_coerce_from_object(self):
        class Item:
            product_id = "p1"
            quantity = 4
            price = Decimal("1.25")

        item = LineItem.coerce(Item())

        assert item == LineItem(product_id="p1", quantity=4, price=Decimal("1.25"))


class TestCreateOrder:
    """Tests for the transactional create."""

    def test_creates_header_and_items(self, order_manager):
        order = order_manager.create_order(
            user_id=1,
            shipping_address="123 Main Street, Springfield",
            payment_method="credit_card",
            line_items=make_items(("prod-a", 2, "10.00"), ("prod-b", 1, "5.00")),
        )

        assert order.total_amount == Decimal("25.00")
        assert order.status == OrderStatus.PENDING.value
        assert [i.product_id for i in order.items] == ["prod-a", "prod-b"]
        assert all(i.order_id == order.id for i in order.items)
        assert order.order_date is not None
        assert order.delivery_date is None

    def test_failed_item_insert_rolls_back_everything(self, order_manager, database):
        # quantity 0 violates the order_items CHECK constraint on the second insert
        with pytest.raises(InternalError) as exc_info:
            order_manager.create_order(
                user_id=1,
                shipping_address="123 Main Street, Springfield",
                payment_method="paypal",
                line_items=make_items(("prod-a", 2, "10.00"), ("prod-b", 0, "5.00")),
            )

        assert exc_info.value.cause is not None
        assert exc_info.value.detail == "An unexpected error occurred"

        with database.get_session() as session:
            assert session.query(OrderModel).count() == 0
            assert session.query(OrderItemModel).count() == 0

    def test_unknown_products_accepted_without_verification(self, order_manager):
        order = order_manager.create_order(
            user_id=1,
            shipping_address="123 Main Street, Springfield",
            payment_method="cash_on_delivery",
            line_items=make_items(("does-not-exist", 1, "9.99")),
        )

        assert order.items[0].product_id == "does-not-exist"

    def test_unknown_products_rejected_with_verification(self, database, product_store):
        manager = OrderManager(database, product_store=product_store, verify_products=True)
        real = product_store.create("Sock", Decimal("3.00"), "Wool sock", "Knit")

        with pytest.raises(BadRequestError, match="Unknown product"):
            manager.create_order(
                user_id=1,
                shipping_address="123 Main Street, Springfield",
                payment_method="debit_card",
                line_items=make_items((real.id, 1, "3.00"), ("ghost", 1, "1.00")),
            )

        assert manager.list_orders() == []

    def test_verified_order_with_real_products(self, database, product_store):
        manager = OrderManager(database, product_store=product_store, verify_products=True)
        real = product_store.create("Sock", Decimal("3.00"), "Wool sock", "Knit")

        order = manager.create_order(
            user_id=1,
            shipping_address="123 Main Street, Springfield",
            payment_method="debit_card",
            line_items=make_items((real.id, 2, "3.00")),
        )

        assert order.total_amount == Decimal("6.00")

    def test_verification_requires_product_store(self, database):
        with pytest.raises(ValueError):
            OrderManager(database, verify_products=True)


class TestOrderOperations:
    """Tests for list, get, update and remove."""

    @pytest.fixture
    def order(self, order_manager):
        return order_manager.create_order(
            user_id=1,
            shipping_address="123 Main Street, Springfield",
            payment_method="credit_card",
            line_items=make_items(("prod-a", 1, "10.00")),
        )

    def test_get(self, order_manager, order):
        fetched = order_manager.get(order.id)

        assert fetched.id == order.id
        assert len(fetched.items) == 1

    def test_get_missing_raises(self, order_manager):
        with pytest.raises(NotFoundError):
            order_manager.get("no-such-order")

    def test_list_filters_and_paginates(self, order_manager, order):
        for user_id in (2, 2, 2):
            order_manager.create_order(
                user_id=user_id,
                shipping_address="9 Elm Avenue, Shelbyville",
                payment_method="paypal",
                line_items=make_items(("prod-a", 1, "1.00")),
            )

        assert len(order_manager.list_orders()) == 4
        assert len(order_manager.list_orders(user_id=2)) == 3
        assert len(order_manager.list_orders(user_id=2, page=2, limit=2)) == 1
        assert order_manager.list_orders(status="shipped") == []

    def test_update_header_keeps_total(self, order_manager, order):
        updated = order_manager.update(
            order.id,
            shipping_address="77 Oak Road, Capital City",
            payment_method="paypal",
        )

        assert updated.shipping_address == "77 Oak Road, Capital City"
        assert updated.payment_method == "paypal"
        assert updated.total_amount == order.total_amount

    def test_status_walk_to_delivered_stamps_date(self, order_manager, order):
        for status in ("confirmed", "shipped", "delivered"):
            updated = order_manager.update_status(order.id, status)

        assert updated.status == "delivered"
        assert updated.delivery_date is not None

    def test_illegal_transition_rejected(self, order_manager, order):
        with pytest.raises(BadRequestError):
            order_manager.update_status(order.id, "delivered")

        assert order_manager.get(order.id).status == "pending"

    def test_update_routes_status_through_transition_check(self, order_manager, order):
        order_manager.update_status(order.id, "cancelled")

        with pytest.raises(BadRequestError):
            order_manager.update(order.id, status="confirmed")

    def test_remove(self, order_manager, database, order):
        result = order_manager.remove(order.id)

        assert result == {"message": f"Order with ID {order.id} cancelled successfully"}
        with database.get_session() as session:
            assert session.query(OrderItemModel).count() == 0

    def test_remove_missing_raises(self, order_manager):
        with pytest.raises(NotFoundError):
            order_manager.remove("no-such-order")


class TestTransitions:
    """Tests for the status transition table."""

    @pytest.mark.parametrize("current,new", [
        ("pending", "confirmed"),
        ("pending", "cancelled"),
        ("confirmed", "shipped"),
        ("confirmed", "cancelled"),
        ("shipped", "delivered"),
        ("shipped", "shipped"),
    ])
    def test_allowed(self, current, new):
        check_transition(current, new)

    @pytest.mark.parametrize("current,new", [
        ("pending", "shipped"),
        ("shipped", "cancelled"),
        ("delivered", "pending"),
        ("cancelled", "confirmed"),
    ])
    def test_rejected(self, current, new):
        with pytest.raises(BadRequestError):
            check_transition(current, new)
