"""
Request/response schemas for ledger computations and operations.
"""
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from shopdesk.schemas.order import Order
from shopdesk.schemas.product import Product


class StockReconciliation(BaseModel):
    """Ordered vs received stock for one product, per variant key."""

    product_id: str = Field(alias="productId")
    ordered_by_variant: dict[str, int] = Field(alias="orderedByVariant")
    total_ordered: int = Field(alias="totalOrdered")
    total_received: int = Field(alias="totalReceived")
    remaining_to_receive: int = Field(alias="remainingToReceive")
    surplus_by_variant: dict[str, int] = Field(alias="surplusByVariant")
    # Surplus still on the shelf once extras already sold are taken out
    available_extras_by_variant: dict[str, int] = Field(alias="availableExtrasByVariant")
    total_sold: int = Field(alias="totalSold")
    extras: int

    model_config = ConfigDict(populate_by_name=True)


class AllocationResult(BaseModel):
    """Outcome of allocating one payment."""

    client_id: Optional[str] = Field(None, alias="clientId")
    orders: list[Order]
    updated_order_ids: list[str] = Field(default_factory=list, alias="updatedOrderIds")

    model_config = ConfigDict(populate_by_name=True)

    @property
    def attributed(self) -> bool:
        return self.client_id is not None


class CascadeResult(BaseModel):
    """Outcome of a rate change cascade."""

    product: Product
    orders: list[Order]
    updated_order_ids: list[str] = Field(default_factory=list, alias="updatedOrderIds")

    model_config = ConfigDict(populate_by_name=True)


class PaymentRequest(BaseModel):
    """Record a payment, either structured or as a raw M-Pesa message."""

    transaction_code: Optional[str] = Field(None, alias="transactionCode")
    amount: Optional[float] = Field(None, gt=0)
    payer_name: str = Field("", alias="payerName")
    client_id: Optional[str] = Field(None, alias="clientId")
    raw_message: str = Field("", alias="rawMessage")

    model_config = ConfigDict(populate_by_name=True)


class FreightRateRequest(BaseModel):
    freight_charge: float = Field(..., ge=0, alias="freightCharge")

    model_config = ConfigDict(populate_by_name=True)


class OperationResult(BaseModel):
    """Success flag and message reported back to the caller."""

    success: bool
    message: str
    data: Optional[Any] = None


class ProductSummary(BaseModel):
    """Ordered quantities of one product, broken down by variant label."""

    product_id: str = Field(alias="productId")
    product_name: str = Field(alias="productName")
    variants: dict[str, int]
    total_quantity: int = Field(alias="totalQuantity")

    model_config = ConfigDict(populate_by_name=True)


class DashboardStats(BaseModel):
    total_revenue: float = Field(alias="totalRevenue")
    pending_orders: int = Field(alias="pendingOrders")
    fob_outstanding: float = Field(alias="fobOutstanding")
    freight_outstanding: float = Field(alias="freightOutstanding")

    model_config = ConfigDict(populate_by_name=True)
