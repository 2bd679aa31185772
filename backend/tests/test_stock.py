"""
Tests for variant keys and stock reconciliation.
"""
import pytest

from shopdesk.core.errors import ValidationError
from shopdesk.schemas import DynamicAttribute, OrderStatus, Product, StockStatus
from shopdesk.services import stock

from tests.conftest import make_order


def attrs(*pairs: tuple[str, str]) -> list[DynamicAttribute]:
    return [DynamicAttribute(key=k, value=v) for k, v in pairs]


def line_order(order_id: str, quantity: int, picks: list[DynamicAttribute], **fields):
    order = make_order(order_id, "cli-1", [("prod-tee", quantity, 0, 0)], **fields)
    order.items[0].selected_attributes = picks
    return order


@pytest.fixture
def tee() -> Product:
    return Product(
        id="prod-tee",
        catalog_id="cat-1",
        name="T-Shirt",
        fob_price=700,
        attributes=attrs(("Color", "Red, Blue"), ("Size", "M, L")),
        stock_counts={"Color:Red, Size:M": 5, "Color:Blue, Size:L": 1},
    )


class TestVariantKey:
    """Canonical keys."""

    def test_attribute_order_does_not_matter(self):
        first = stock.variant_key(attrs(("Color", "Red"), ("Size", "M")))
        second = stock.variant_key(attrs(("Size", "M"), ("Color", "Red")))
        assert first == second == "Color:Red, Size:M"

    def test_no_attributes_is_standard(self):
        assert stock.variant_key([]) == "Standard"

    def test_label_sorts_by_key(self):
        assert stock.variant_label(attrs(("Size", "M"), ("Color", "Red"))) == "Red / M"
        assert stock.variant_label([]) == "Standard"

    def test_variant_space_is_cross_product(self, tee):
        assert stock.variant_space(tee) == [
            "Color:Red, Size:M",
            "Color:Red, Size:L",
            "Color:Blue, Size:M",
            "Color:Blue, Size:L",
        ]

    def test_variant_space_without_attributes(self):
        plain = Product(id="p", catalog_id="c", name="Plain", fob_price=1)
        assert stock.variant_space(plain) == ["Standard"]


class TestReconcile:
    """Ordered against received."""

    def test_totals_and_remaining(self, tee):
        orders = [
            line_order("ord-1", 3, attrs(("Size", "M"), ("Color", "Red"))),
            line_order("ord-2", 4, attrs(("Color", "Blue"), ("Size", "L"))),
        ]
        result = stock.reconcile(tee, orders)

        assert result.ordered_by_variant == {"Color:Red, Size:M": 3, "Color:Blue, Size:L": 4}
        assert result.total_ordered == 7
        assert result.total_received == 6
        assert result.remaining_to_receive == 1

    def test_surplus_never_negative(self, tee):
        orders = [
            line_order("ord-1", 3, attrs(("Color", "Red"), ("Size", "M"))),
            line_order("ord-2", 4, attrs(("Color", "Blue"), ("Size", "L"))),
        ]
        result = stock.reconcile(tee, orders)

        assert result.surplus_by_variant == {"Color:Red, Size:M": 2}
        assert all(v >= 0 for v in result.surplus_by_variant.values())

    def test_orders_count_regardless_of_status_or_lock(self, tee):
        orders = [
            line_order("ord-1", 2, attrs(("Color", "Red"), ("Size", "M")), status=OrderStatus.DELIVERED),
            line_order("ord-2", 2, attrs(("Color", "Red"), ("Size", "M")), is_locked=True),
        ]
        result = stock.reconcile(tee, orders)

        assert result.ordered_by_variant == {"Color:Red, Size:M": 4}
        assert result.surplus_by_variant == {"Color:Red, Size:M": 1}

    def test_remaining_floors_at_zero(self, tee):
        result = stock.reconcile(tee, [])

        assert result.remaining_to_receive == 0
        assert result.extras == 6

    def test_sold_extras_reduce_availability(self, tee):
        tee = tee.model_copy(update={"stock_sold": {"Color:Red, Size:M": 2}})
        orders = [line_order("ord-1", 1, attrs(("Color", "Red"), ("Size", "M")))]
        result = stock.reconcile(tee, orders)

        assert result.surplus_by_variant["Color:Red, Size:M"] == 4
        assert result.available_extras_by_variant == {
            "Color:Red, Size:M": 2,
            "Color:Blue, Size:L": 1,
        }
        assert result.total_sold == 2
        assert result.extras == 3


class TestStockMovements:
    """Arrivals and extra sales."""

    def test_arrival_marks_product_arrived(self, tee):
        updated = stock.record_arrival(tee, {"Standard": 2})
        assert updated.stock_status == StockStatus.ARRIVED
        assert updated.stock_counts == {"Standard": 2}

    def test_empty_arrival_stays_pending(self, tee):
        updated = stock.record_arrival(tee, {"Color:Red, Size:M": 0})
        assert updated.stock_status == StockStatus.PENDING

    def test_negative_count_rejected(self, tee):
        with pytest.raises(ValidationError):
            stock.record_arrival(tee, {"Standard": -1})

    def test_sell_extra(self, tee):
        updated = stock.sell_extra(tee, "Color:Red, Size:M", 2, [])
        assert updated.stock_sold == {"Color:Red, Size:M": 2}

    def test_cannot_oversell_extras(self, tee):
        orders = [line_order("ord-1", 4, attrs(("Color", "Red"), ("Size", "M")))]
        with pytest.raises(ValidationError, match="Only 1 extra"):
            stock.sell_extra(tee, "Color:Red, Size:M", 2, orders)
