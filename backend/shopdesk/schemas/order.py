"""
Order schemas.
"""
from datetime import datetime, timezone
from enum import Enum

from pydantic import Field

from shopdesk.schemas.base import Record
from shopdesk.schemas.product import DynamicAttribute


class OrderStatus(str, Enum):
    DRAFT = "DRAFT"
    CONFIRMED = "CONFIRMED"
    SHIPPED = "SHIPPED"
    ARRIVED = "ARRIVED"
    DELIVERED = "DELIVERED"

    @property
    def rank(self) -> int:
        return list(OrderStatus).index(self)


class PaymentStatus(str, Enum):
    UNPAID = "UNPAID"
    PARTIAL = "PARTIAL"
    PAID = "PAID"


class OrderItem(Record):
    """
    One order line. FOB and freight subtotals are snapshots taken when the
    line was entered and only change through an explicit cascade.
    """

    id: str
    product_id: str = Field(alias="productId")
    quantity: int = Field(..., gt=0)
    fob_total: float = Field(0.0, alias="fobTotal")
    freight_total: float = Field(0.0, alias="freightTotal")
    selected_attributes: list[DynamicAttribute] = Field(
        default_factory=list,
        alias="selectedAttributes",
    )


class Order(Record):
    """Client order with independent FOB and freight payment tracking."""

    id: str
    client_id: str = Field(alias="clientId")
    items: list[OrderItem] = Field(default_factory=list)
    order_date: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        alias="orderDate",
    )
    status: OrderStatus = OrderStatus.CONFIRMED
    fob_payment_status: PaymentStatus = Field(PaymentStatus.UNPAID, alias="fobPaymentStatus")
    freight_payment_status: PaymentStatus = Field(
        PaymentStatus.UNPAID,
        alias="freightPaymentStatus",
    )
    total_fob_paid: float = Field(0.0, alias="totalFobPaid")
    total_freight_paid: float = Field(0.0, alias="totalFreightPaid")
    is_locked: bool = Field(False, alias="isLocked")

    @property
    def fob_cost(self) -> float:
        return sum(item.fob_total for item in self.items)

    @property
    def freight_cost(self) -> float:
        return sum(item.freight_total for item in self.items)

    @property
    def is_open(self) -> bool:
        """Open orders still accept financial changes."""
        return not self.is_locked and self.status != OrderStatus.DELIVERED

    def contains_product(self, product_id: str) -> bool:
        return any(item.product_id == product_id for item in self.items)
