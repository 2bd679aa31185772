"""
Read-only report aggregations over the current state.
"""
from datetime import datetime, timezone
from typing import Optional

from shopdesk.schemas.catalog import Catalog
from shopdesk.schemas.ledger import DashboardStats, ProductSummary
from shopdesk.schemas.order import Order, OrderStatus
from shopdesk.schemas.payment import PaymentTransaction
from shopdesk.schemas.product import Product
from shopdesk.services.stock import variant_label


def consolidated_summary(
    orders: list[Order],
    products: list[Product],
    catalog_id: Optional[str] = None,
) -> list[ProductSummary]:
    """
    Total ordered quantity per product and variant, the supplier order sheet.

    Lines for products no longer in the catalog list are skipped.
    """
    by_id = {p.id: p for p in products}
    summary: dict[str, dict[str, int]] = {}
    for order in orders:
        for item in order.items:
            product = by_id.get(item.product_id)
            if product is None:
                continue
            if catalog_id and product.catalog_id != catalog_id:
                continue
            variants = summary.setdefault(product.id, {})
            label = variant_label(item.selected_attributes)
            variants[label] = variants.get(label, 0) + item.quantity

    return [
        ProductSummary(
            product_id=product_id,
            product_name=by_id[product_id].name,
            variants=variants,
            total_quantity=sum(variants.values()),
        )
        for product_id, variants in summary.items()
    ]


def dashboard_stats(
    orders: list[Order],
    payments: list[PaymentTransaction],
) -> DashboardStats:
    pending = [o for o in orders if o.status != OrderStatus.DELIVERED]
    return DashboardStats(
        total_revenue=sum(p.amount for p in payments),
        pending_orders=len(pending),
        fob_outstanding=sum(max(0.0, o.fob_cost - o.total_fob_paid) for o in pending),
        freight_outstanding=sum(
            max(0.0, o.freight_cost - o.total_freight_paid) for o in pending
        ),
    )


def catalog_payments(
    catalog_id: str,
    orders: list[Order],
    products: list[Product],
    payments: list[PaymentTransaction],
) -> list[PaymentTransaction]:
    """Payments made by clients who ordered at least one product of the catalog."""
    catalog_products = {p.id for p in products if p.catalog_id == catalog_id}
    clients = {
        o.client_id
        for o in orders
        if any(i.product_id in catalog_products for i in o.items)
    }
    return [p for p in payments if p.client_id in clients]


def product_catalog_deadline(
    order: Order,
    products: list[Product],
    catalogs: list[Catalog],
    now: Optional[datetime] = None,
) -> datetime:
    """Closing date of the catalog behind the order's first line, else now."""
    fallback = now or datetime.now(timezone.utc)
    if not order.items:
        return fallback
    product = next((p for p in products if p.id == order.items[0].product_id), None)
    if product is None:
        return fallback
    catalog = next((c for c in catalogs if c.id == product.catalog_id), None)
    return catalog.closing_date if catalog else fallback
