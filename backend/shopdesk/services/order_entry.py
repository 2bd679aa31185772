"""
Order entry: building a cart, merging it into a client's open order and
moving orders along their shipment lifecycle.
"""
from datetime import datetime, timezone
from typing import Iterable, Optional

from shopdesk.core.errors import ValidationError
from shopdesk.core.logging import get_logger
from shopdesk.core.security import generate_id
from shopdesk.schemas.order import Order, OrderItem, OrderStatus, PaymentStatus
from shopdesk.schemas.product import DynamicAttribute, Product
from shopdesk.services.payments import derive_payment_status

logger = get_logger(__name__)


def _same_line(a: OrderItem, b: OrderItem) -> bool:
    # Attribute lists compare in order, so "Red, M" and "M, Red" stay separate lines
    return a.product_id == b.product_id and a.selected_attributes == b.selected_attributes


def _merge_line(lines: list[OrderItem], line: OrderItem) -> list[OrderItem]:
    for index, existing in enumerate(lines):
        if _same_line(existing, line):
            lines[index] = existing.model_copy(
                update={
                    "quantity": existing.quantity + line.quantity,
                    "fob_total": existing.fob_total + line.fob_total,
                }
            )
            return lines
    lines.append(line)
    return lines


def add_to_cart(
    cart: list[OrderItem],
    product: Product,
    quantity: int,
    selected_attributes: Optional[list[DynamicAttribute]] = None,
) -> list[OrderItem]:
    """
    Add a product to a cart, snapshotting its current FOB price.

    Freight starts at zero on a new line; it is filled in by the freight
    cascade once the shipping rate is known.
    """
    if quantity <= 0:
        raise ValidationError("Quantity must be at least 1", field="quantity")

    line = OrderItem(
        id=generate_id("item"),
        product_id=product.id,
        quantity=quantity,
        fob_total=product.fob_price * quantity,
        freight_total=0.0,
        selected_attributes=list(selected_attributes or []),
    )
    return _merge_line(list(cart), line)


def find_open_order(orders: Iterable[Order], client_id: str) -> Optional[Order]:
    return next((o for o in orders if o.client_id == client_id and o.is_open), None)


def finalize_cart(
    orders: list[Order],
    client_id: str,
    cart: list[OrderItem],
    now: Optional[datetime] = None,
) -> tuple[list[Order], Order]:
    """
    Turn a cart into an order.

    The cart joins the client's existing open order when there is one and
    the FOB status is re-derived against the larger total. Otherwise a new
    order is opened in ARRIVED state.
    """
    if not client_id:
        raise ValidationError("Please select a client", field="clientId")
    if not cart:
        raise ValidationError("Cart is empty", field="items")

    existing = find_open_order(orders, client_id)
    if existing is not None:
        items = list(existing.items)
        for line in cart:
            items = _merge_line(items, line)
        merged = existing.model_copy(update={"items": items})
        merged = merged.model_copy(
            update={
                "fob_payment_status": derive_payment_status(
                    merged.total_fob_paid, merged.fob_cost
                ),
            }
        )
        logger.info("Cart merged into open order", order_id=merged.id, lines=len(cart))
        return [merged if o.id == merged.id else o for o in orders], merged

    order = Order(
        id=generate_id("ord"),
        client_id=client_id,
        items=list(cart),
        order_date=now or datetime.now(timezone.utc),
        status=OrderStatus.ARRIVED,
        fob_payment_status=PaymentStatus.UNPAID,
        freight_payment_status=PaymentStatus.UNPAID,
    )
    logger.info("Order created from cart", order_id=order.id, client_id=client_id, lines=len(cart))
    return [*orders, order], order


def advance_status(order: Order, status: OrderStatus) -> Order:
    """
    Move an order along DRAFT -> CONFIRMED -> SHIPPED -> ARRIVED -> DELIVERED.

    Steps may be skipped but never reversed.
    """
    status = OrderStatus(status)
    if status.rank < order.status.rank:
        raise ValidationError(
            f"Order cannot move back from {order.status.value} to {status.value}",
            field="status",
        )
    return order.model_copy(update={"status": status})


def lock_orders(orders: list[Order], product_ids: set[str]) -> tuple[list[Order], list[str]]:
    """Lock every order holding one of the given products."""
    locked: list[str] = []
    result: list[Order] = []
    for order in orders:
        if not order.is_locked and any(i.product_id in product_ids for i in order.items):
            order = order.model_copy(update={"is_locked": True})
            locked.append(order.id)
        result.append(order)
    return result, locked
