"""
Stock reconciliation - compares what clients ordered against what arrived.

Counts are keyed by a canonical variant key built from the chosen
attributes, so "Size:M, Color:Red" and "Color:Red, Size:M" land on the same
bucket.
"""
from itertools import product as cartesian
from typing import Iterable

from shopdesk.core.errors import ValidationError
from shopdesk.core.logging import get_logger
from shopdesk.schemas.ledger import StockReconciliation
from shopdesk.schemas.order import Order
from shopdesk.schemas.product import DynamicAttribute, Product, StockStatus

logger = get_logger(__name__)

STANDARD_VARIANT = "Standard"


def variant_key(attributes: Iterable[DynamicAttribute]) -> str:
    """
    Canonical key for a set of chosen attributes.

    Attributes are sorted by key and rendered as ``key:value`` joined by
    ", ". A line with no attributes uses the "Standard" bucket.
    """
    ordered = sorted(attributes, key=lambda a: a.key)
    if not ordered:
        return STANDARD_VARIANT
    return ", ".join(f"{a.key}:{a.value}" for a in ordered)


def variant_label(attributes: Iterable[DynamicAttribute]) -> str:
    """Human label used on reports, e.g. ``Red / M``."""
    ordered = sorted(attributes, key=lambda a: a.key)
    if not ordered:
        return STANDARD_VARIANT
    return " / ".join(a.value for a in ordered)


def variant_space(product: Product) -> list[str]:
    """Every variant key a product can be ordered in."""
    axes = [
        [DynamicAttribute(key=attr.key, value=option) for option in attr.options]
        for attr in product.attributes
        if attr.options
    ]
    if not axes:
        return [STANDARD_VARIANT]
    return [variant_key(combo) for combo in cartesian(*axes)]


def ordered_variants(product_id: str, orders: Iterable[Order]) -> dict[str, int]:
    """
    Quantity ordered per variant across every order, whatever its catalog,
    status or lock state.
    """
    totals: dict[str, int] = {}
    for order in orders:
        for item in order.items:
            if item.product_id != product_id:
                continue
            key = variant_key(item.selected_attributes)
            totals[key] = totals.get(key, 0) + item.quantity
    return totals


def reconcile(product: Product, orders: Iterable[Order]) -> StockReconciliation:
    """Reconcile a product's received stock against all orders for it."""
    ordered = ordered_variants(product.id, orders)
    total_ordered = sum(ordered.values())
    total_received = sum(product.stock_counts.values())
    total_sold = sum(product.stock_sold.values())

    surplus: dict[str, int] = {}
    available: dict[str, int] = {}
    for key, received in product.stock_counts.items():
        extra = max(0, received - ordered.get(key, 0))
        if extra > 0:
            surplus[key] = extra
        left = max(0, extra - product.stock_sold.get(key, 0))
        if left > 0:
            available[key] = left

    return StockReconciliation(
        product_id=product.id,
        ordered_by_variant=ordered,
        total_ordered=total_ordered,
        total_received=total_received,
        remaining_to_receive=max(0, total_ordered - total_received),
        surplus_by_variant=surplus,
        available_extras_by_variant=available,
        total_sold=total_sold,
        extras=max(0, total_received - total_ordered - total_sold),
    )


def validate_counts(counts: dict[str, int], field: str) -> dict[str, int]:
    for key, value in counts.items():
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            raise ValidationError(
                f"Stock count for '{key}' must be a non-negative whole number",
                field=field,
            )
    return dict(counts)


def record_arrival(product: Product, counts: dict[str, int]) -> Product:
    """
    Store the counts that arrived per variant.

    The product is marked ARRIVED as soon as any variant has a positive count.
    """
    counts = validate_counts(counts, "stockCounts")
    status = StockStatus.ARRIVED if any(v > 0 for v in counts.values()) else StockStatus.PENDING
    logger.info(
        "Stock arrival recorded",
        product_id=product.id,
        received=sum(counts.values()),
        status=status.value,
    )
    return product.model_copy(update={"stock_counts": counts, "stock_status": status})


def sell_extra(
    product: Product,
    variant: str,
    quantity: int,
    orders: Iterable[Order],
) -> Product:
    """Record a sale of surplus stock in one variant."""
    if quantity <= 0:
        raise ValidationError("Quantity must be at least 1", field="quantity")

    available = reconcile(product, orders).available_extras_by_variant.get(variant, 0)
    if quantity > available:
        raise ValidationError(
            f"Only {available} extra unit(s) of '{variant}' available",
            field="quantity",
        )

    sold = dict(product.stock_sold)
    sold[variant] = sold.get(variant, 0) + quantity
    logger.info("Extra stock sold", product_id=product.id, variant=variant, quantity=quantity)
    return product.model_copy(update={"stock_sold": sold})
