"""
Payment allocation - spreads an incoming payment over a client's open orders.

FOB is always settled before freight. The allocation never touches order
lines, the lock flag or the shipment status.
"""
from typing import Optional

from shopdesk.core.logging import get_logger
from shopdesk.schemas.client import Client
from shopdesk.schemas.ledger import AllocationResult
from shopdesk.schemas.order import Order, PaymentStatus
from shopdesk.schemas.payment import PaymentTransaction

logger = get_logger(__name__)


def derive_payment_status(paid: float, cost: float) -> PaymentStatus:
    """
    Three-way status shared by the FOB and freight sides.

    A zero-cost order never reaches PAID, whatever has been paid.
    """
    if paid >= cost and cost > 0:
        return PaymentStatus.PAID
    if paid == 0:
        return PaymentStatus.UNPAID
    return PaymentStatus.PARTIAL


def match_client(
    payment: PaymentTransaction,
    clients: list[Client],
) -> Optional[Client]:
    """
    Resolve the client a payment belongs to.

    An explicit client reference wins. Otherwise the first client whose name
    appears, case-insensitively, inside the payer name is taken. This is a
    best-effort heuristic: common names can match the wrong client.
    """
    if payment.client_id:
        client = next((c for c in clients if c.id == payment.client_id), None)
        if client is None:
            logger.warning(
                "Payment references unknown client",
                transaction_code=payment.transaction_code,
                client_id=payment.client_id,
            )
        return client

    payer = payment.payer_name.strip().lower()
    if not payer:
        return None
    return next((c for c in clients if c.name.strip().lower() in payer), None)


def _allocate_to_order(order: Order, amount: float) -> Order:
    fob_cost = order.fob_cost
    freight_cost = order.freight_cost

    # Each order's pass starts again from the full payment amount
    remaining = amount
    fob_paid = order.total_fob_paid
    freight_paid = order.total_freight_paid

    if fob_paid < fob_cost:
        applied = min(remaining, fob_cost - fob_paid)
        fob_paid += applied
        remaining -= applied

    # Freight takes the overflow uncapped, so it can exceed the freight cost
    if remaining > 0 and fob_paid >= fob_cost:
        freight_paid += remaining

    return order.model_copy(
        update={
            "total_fob_paid": fob_paid,
            "total_freight_paid": freight_paid,
            "fob_payment_status": derive_payment_status(fob_paid, fob_cost),
            "freight_payment_status": derive_payment_status(freight_paid, freight_cost),
        }
    )


def apply_payment(
    payment: PaymentTransaction,
    orders: list[Order],
    clients: list[Client],
) -> AllocationResult:
    """
    Allocate a payment across every open order of the matched client.

    Orders qualify when they are unlocked and not DELIVERED. When no client
    matches, the payment stays unattributed and no order changes.
    """
    client = match_client(payment, clients)
    if client is None:
        logger.info(
            "Payment left unattributed",
            transaction_code=payment.transaction_code,
            payer_name=payment.payer_name,
        )
        return AllocationResult(client_id=None, orders=list(orders))

    updated: list[Order] = []
    updated_ids: list[str] = []
    for order in orders:
        if order.client_id == client.id and order.is_open:
            order = _allocate_to_order(order, payment.amount)
            updated_ids.append(order.id)
        updated.append(order)

    logger.info(
        "Payment allocated",
        transaction_code=payment.transaction_code,
        client_id=client.id,
        amount=payment.amount,
        orders=len(updated_ids),
    )
    return AllocationResult(client_id=client.id, orders=updated, updated_order_ids=updated_ids)
