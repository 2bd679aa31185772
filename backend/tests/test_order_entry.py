"""
Tests for cart building, cart finalization and the order lifecycle.
"""
from datetime import datetime, timezone

import pytest

from shopdesk.core.errors import ValidationError
from shopdesk.schemas import DynamicAttribute, OrderStatus, PaymentStatus
from shopdesk.services import order_entry

from tests.conftest import make_order

BLACK_40 = [DynamicAttribute(key="Color", value="Black"), DynamicAttribute(key="Size", value="40")]


class TestAddToCart:
    """Cart lines."""

    def test_new_line_snapshots_fob_price(self, products):
        cart = order_entry.add_to_cart([], products[1], 2, BLACK_40)

        assert len(cart) == 1
        assert cart[0].fob_total == 5000
        assert cart[0].freight_total == 0
        assert cart[0].selected_attributes == BLACK_40

    def test_same_product_and_attributes_merge(self, products):
        cart = order_entry.add_to_cart([], products[1], 2, BLACK_40)
        cart = order_entry.add_to_cart(cart, products[1], 1, BLACK_40)

        assert len(cart) == 1
        assert cart[0].quantity == 3
        assert cart[0].fob_total == 7500

    def test_different_attributes_stay_separate(self, products):
        cart = order_entry.add_to_cart([], products[1], 1, BLACK_40)
        cart = order_entry.add_to_cart(cart, products[1], 1, list(reversed(BLACK_40)))

        assert len(cart) == 2

    def test_quantity_must_be_positive(self, products):
        with pytest.raises(ValidationError):
            order_entry.add_to_cart([], products[0], 0)


class TestFinalizeCart:
    """Turning a cart into an order."""

    def test_new_order_opens_arrived_and_unpaid(self, products):
        cart = order_entry.add_to_cart([], products[0], 1)
        now = datetime(2024, 7, 1, tzinfo=timezone.utc)
        orders, order = order_entry.finalize_cart([], "cli-jane", cart, now=now)

        assert orders == [order]
        assert order.status == OrderStatus.ARRIVED
        assert order.fob_payment_status == PaymentStatus.UNPAID
        assert order.freight_payment_status == PaymentStatus.UNPAID
        assert order.total_fob_paid == 0
        assert order.is_locked is False
        assert order.order_date == now

    def test_merges_into_open_order(self, products):
        existing = make_order(
            "ord-1",
            "cli-jane",
            [("prod-mixer", 1, 15000, 0)],
            total_fob_paid=15000,
            fob_payment_status=PaymentStatus.PAID,
        )
        cart = order_entry.add_to_cart([], products[1], 2, BLACK_40)
        orders, order = order_entry.finalize_cart([existing], "cli-jane", cart)

        assert len(orders) == 1
        assert order.id == "ord-1"
        assert len(order.items) == 2
        assert order.fob_cost == 20000
        assert order.fob_payment_status == PaymentStatus.PARTIAL

    def test_matching_line_accumulates(self, products):
        existing = make_order("ord-1", "cli-jane", [("prod-mixer", 1, 15000, 0)])
        cart = order_entry.add_to_cart([], products[0], 2)
        _, order = order_entry.finalize_cart([existing], "cli-jane", cart)

        assert len(order.items) == 1
        assert order.items[0].quantity == 3
        assert order.items[0].fob_total == 45000

    def test_locked_order_is_not_reused(self, products):
        locked = make_order("ord-1", "cli-jane", [("prod-mixer", 1, 15000, 0)], is_locked=True)
        cart = order_entry.add_to_cart([], products[0], 1)
        orders, order = order_entry.finalize_cart([locked], "cli-jane", cart)

        assert len(orders) == 2
        assert order.id != "ord-1"

    def test_empty_cart_rejected(self):
        with pytest.raises(ValidationError, match="Cart is empty"):
            order_entry.finalize_cart([], "cli-jane", [])


class TestLifecycle:
    """Forward-only status moves."""

    def test_forward_moves_allowed(self):
        order = make_order("ord-1", "cli-1", [("p", 1, 10, 0)])
        assert order_entry.advance_status(order, OrderStatus.SHIPPED).status == OrderStatus.SHIPPED
        assert order_entry.advance_status(order, OrderStatus.DELIVERED).status == OrderStatus.DELIVERED

    def test_backward_move_rejected(self):
        order = make_order("ord-1", "cli-1", [("p", 1, 10, 0)], status=OrderStatus.ARRIVED)
        with pytest.raises(ValidationError, match="cannot move back"):
            order_entry.advance_status(order, OrderStatus.SHIPPED)

    def test_lock_orders(self):
        orders = [
            make_order("ord-1", "cli-1", [("prod-a", 1, 10, 0)]),
            make_order("ord-2", "cli-1", [("prod-b", 1, 10, 0)]),
        ]
        updated, locked = order_entry.lock_orders(orders, {"prod-a"})

        assert locked == ["ord-1"]
        assert updated[0].is_locked is True
        assert updated[1].is_locked is False
