"""
Ledger API routes: payments, freight rate changes, stock reconciliation and
reports.
"""
from typing import Optional

from fastapi import APIRouter, status

from shopdesk.core.errors import ValidationError
from shopdesk.core.logging import get_logger
from shopdesk.routers.deps import StoreDep
from shopdesk.schemas.ledger import (
    AllocationResult,
    CascadeResult,
    DashboardStats,
    FreightRateRequest,
    PaymentRequest,
    ProductSummary,
    StockReconciliation,
)
from shopdesk.schemas.payment import PaymentTransaction
from shopdesk.services.invoice import InvoiceKind

logger = get_logger(__name__)

router = APIRouter(tags=["ledger"])


@router.post("/payments", response_model=AllocationResult, status_code=status.HTTP_201_CREATED)
async def record_payment(request: PaymentRequest, store: StoreDep) -> AllocationResult:
    """
    Record a payment and allocate it over the payer's open orders.

    A raw M-Pesa message is parsed for its code and amount; otherwise the
    transaction code and amount must be given.
    """
    if request.raw_message:
        return await store.record_mpesa_message(request.client_id, request.raw_message)

    if not request.transaction_code or request.amount is None:
        raise ValidationError("Transaction code and amount are required", field="transactionCode")
    return await store.record_payment(
        {
            "transaction_code": request.transaction_code,
            "amount": request.amount,
            "payer_name": request.payer_name,
            "client_id": request.client_id,
        }
    )


@router.put("/products/{product_id}/freight", response_model=CascadeResult)
async def set_freight_rate(
    product_id: str,
    request: FreightRateRequest,
    store: StoreDep,
) -> CascadeResult:
    """Change a product's freight rate and reprice open orders holding it."""
    return await store.set_freight_rate(product_id, request.freight_charge)


@router.get("/products/{product_id}/stock", response_model=StockReconciliation)
async def reconcile_stock(product_id: str, store: StoreDep) -> StockReconciliation:
    return store.reconcile_stock(product_id)


@router.get("/reports/summary", response_model=list[ProductSummary])
async def consolidated_summary(
    store: StoreDep,
    catalog_id: Optional[str] = None,
) -> list[ProductSummary]:
    """Supplier order sheet: quantities per product and variant."""
    return store.consolidated_summary(catalog_id)


@router.get("/reports/dashboard", response_model=DashboardStats)
async def dashboard_stats(store: StoreDep) -> DashboardStats:
    return store.dashboard_stats()


@router.get("/reports/catalogs/{catalog_id}/payments", response_model=list[PaymentTransaction])
async def catalog_payments(catalog_id: str, store: StoreDep) -> list[PaymentTransaction]:
    return store.catalog_payments(catalog_id)


@router.get("/orders/{order_id}/invoice")
async def invoice_message(
    order_id: str,
    store: StoreDep,
    kind: InvoiceKind = InvoiceKind.FOB,
) -> dict:
    """Payment reminder text for one side of an order."""
    return {"orderId": order_id, "kind": kind.value, "message": store.invoice_message(order_id, kind)}
