"""
Tests for freight rate and FOB price cascades.
"""
import pytest

from shopdesk.core.errors import ValidationError
from shopdesk.schemas import OrderStatus, PaymentStatus, Product
from shopdesk.services.cascade import apply_fob_price_change, apply_freight_rate_change

from tests.conftest import make_order


@pytest.fixture
def kettle() -> Product:
    return Product(id="prod-p", catalog_id="cat-1", name="Kettle", fob_price=800, freight_charge=100)


class TestFreightCascade:
    """Rate change pushed onto open orders."""

    def test_targeted_line_recomputed(self, kettle):
        active = make_order("ord-1", "cli-1", [("prod-p", 3, 2400, 300), ("prod-q", 1, 500, 50)])
        other = make_order("ord-2", "cli-2", [("prod-q", 2, 1000, 100)])
        delivered = make_order(
            "ord-3",
            "cli-3",
            [("prod-p", 1, 800, 100)],
            status=OrderStatus.DELIVERED,
        )

        result = apply_freight_rate_change(kettle, 150, [active, other, delivered])

        assert result.product.freight_charge == 150
        assert result.updated_order_ids == ["ord-1"]
        updated = result.orders[0]
        assert updated.items[0].freight_total == 450
        assert updated.items[1] == active.items[1]
        assert result.orders[1] == other
        assert result.orders[2] == delivered

    def test_locked_order_untouched(self, kettle):
        locked = make_order("ord-1", "cli-1", [("prod-p", 3, 2400, 300)], is_locked=True)
        result = apply_freight_rate_change(kettle, 150, [locked])

        assert result.orders == [locked]
        assert result.product.freight_charge == 150

    def test_freight_status_rederived_from_unchanged_paid(self, kettle):
        order = make_order(
            "ord-1",
            "cli-1",
            [("prod-p", 2, 1600, 200)],
            total_freight_paid=200,
            freight_payment_status=PaymentStatus.PAID,
        )
        result = apply_freight_rate_change(kettle, 150, [order])

        updated = result.orders[0]
        assert updated.total_freight_paid == 200
        assert updated.freight_cost == 300
        assert updated.freight_payment_status == PaymentStatus.PARTIAL

    def test_fob_side_lock_and_status_untouched(self, kettle):
        order = make_order(
            "ord-1",
            "cli-1",
            [("prod-p", 2, 1600, 200)],
            status=OrderStatus.SHIPPED,
            total_fob_paid=1600,
            fob_payment_status=PaymentStatus.PAID,
        )
        updated = apply_freight_rate_change(kettle, 0, [order]).orders[0]

        assert updated.items[0].fob_total == 1600
        assert updated.fob_payment_status == PaymentStatus.PAID
        assert updated.status == OrderStatus.SHIPPED
        assert updated.is_locked is False

    def test_negative_rate_rejected(self, kettle):
        with pytest.raises(ValidationError):
            apply_freight_rate_change(kettle, -1, [])


class TestFobCascade:
    """Price change pushed onto open orders."""

    def test_price_change_reprices_fob_only(self, kettle):
        order = make_order(
            "ord-1",
            "cli-1",
            [("prod-p", 2, 1600, 200)],
            total_fob_paid=1600,
            fob_payment_status=PaymentStatus.PAID,
        )
        result = apply_fob_price_change(kettle, 1000, [order])

        updated = result.orders[0]
        assert result.product.fob_price == 1000
        assert updated.items[0].fob_total == 2000
        assert updated.items[0].freight_total == 200
        assert updated.fob_payment_status == PaymentStatus.PARTIAL

    def test_delivered_order_keeps_old_price(self, kettle):
        order = make_order(
            "ord-1",
            "cli-1",
            [("prod-p", 2, 1600, 200)],
            status=OrderStatus.DELIVERED,
        )
        result = apply_fob_price_change(kettle, 1000, [order])

        assert result.orders == [order]
        assert result.updated_order_ids == []
