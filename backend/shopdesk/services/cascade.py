"""
Rate cascades - push a product's new freight rate or FOB price onto the
lines of every open order that contains it.
"""
from shopdesk.core.errors import ValidationError
from shopdesk.core.logging import get_logger
from shopdesk.schemas.ledger import CascadeResult
from shopdesk.schemas.order import Order
from shopdesk.schemas.product import Product
from shopdesk.services.payments import derive_payment_status

logger = get_logger(__name__)


def _reprice_lines(order: Order, product_id: str, field: str, unit_rate: float) -> list:
    return [
        item.model_copy(update={field: unit_rate * item.quantity})
        if item.product_id == product_id
        else item
        for item in order.items
    ]


def apply_freight_rate_change(
    product: Product,
    new_rate: float,
    orders: list[Order],
) -> CascadeResult:
    """
    Set a product's per-unit freight charge and recompute affected orders.

    Only unlocked, non-DELIVERED orders holding the product change: their
    matching lines get ``new_rate * quantity`` and the freight status is
    re-derived from the unchanged freight paid total. FOB side, lock flag and
    shipment status are left alone.
    """
    if new_rate < 0:
        raise ValidationError("Freight charge cannot be negative", field="freightCharge")

    updated_product = product.model_copy(update={"freight_charge": new_rate})

    updated: list[Order] = []
    updated_ids: list[str] = []
    for order in orders:
        if order.is_open and order.contains_product(product.id):
            items = _reprice_lines(order, product.id, "freight_total", new_rate)
            freight_cost = sum(item.freight_total for item in items)
            order = order.model_copy(
                update={
                    "items": items,
                    "freight_payment_status": derive_payment_status(
                        order.total_freight_paid, freight_cost
                    ),
                }
            )
            updated_ids.append(order.id)
        updated.append(order)

    logger.info(
        "Freight rate cascaded",
        product_id=product.id,
        old_rate=product.freight_charge,
        new_rate=new_rate,
        orders=len(updated_ids),
    )
    return CascadeResult(product=updated_product, orders=updated, updated_order_ids=updated_ids)


def apply_fob_price_change(
    product: Product,
    new_price: float,
    orders: list[Order],
) -> CascadeResult:
    """FOB counterpart of ``apply_freight_rate_change``; freight side untouched."""
    if new_price < 0:
        raise ValidationError("FOB price cannot be negative", field="fobPrice")

    updated_product = product.model_copy(update={"fob_price": new_price})

    updated: list[Order] = []
    updated_ids: list[str] = []
    for order in orders:
        if order.is_open and order.contains_product(product.id):
            items = _reprice_lines(order, product.id, "fob_total", new_price)
            fob_cost = sum(item.fob_total for item in items)
            order = order.model_copy(
                update={
                    "items": items,
                    "fob_payment_status": derive_payment_status(order.total_fob_paid, fob_cost),
                }
            )
            updated_ids.append(order.id)
        updated.append(order)

    logger.info(
        "FOB price cascaded",
        product_id=product.id,
        old_price=product.fob_price,
        new_price=new_price,
        orders=len(updated_ids),
    )
    return CascadeResult(product=updated_product, orders=updated, updated_order_ids=updated_ids)
