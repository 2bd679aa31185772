"""
Payment reminder text sent to clients over WhatsApp/SMS.
"""
from datetime import datetime
from enum import Enum
from typing import Optional

from shopdesk.core.config import settings
from shopdesk.schemas.client import Client
from shopdesk.schemas.order import Order
from shopdesk.schemas.product import Product
from shopdesk.schemas.settings import ShopSettings


class InvoiceKind(str, Enum):
    FOB = "FOB"
    FREIGHT = "FREIGHT"


def greeting(now: datetime) -> str:
    if now.hour < 12:
        return "Good morning"
    if now.hour < 17:
        return "Good afternoon"
    return "Good evening"


def format_amount(amount: float) -> str:
    """Whole amounts print without decimals, the rest with their cents."""
    if float(amount).is_integer():
        return str(int(amount))
    return f"{amount:.2f}".rstrip("0").rstrip(".")


def format_deadline(deadline: datetime) -> str:
    return f"{deadline.day} {deadline.strftime('%B')}"


def render_invoice_message(
    order: Order,
    client: Client,
    products: list[Product],
    kind: InvoiceKind,
    deadline: datetime,
    shop_settings: ShopSettings,
    now: Optional[datetime] = None,
) -> str:
    """
    Render the payment reminder for one side (FOB or freight) of an order.

    The account number is always the client's phone without the leading
    ``+`` so the paybill can match the payment back to the client.
    """
    kind = InvoiceKind(kind)
    now = now or datetime.now()
    currency = settings.currency_label

    lines: list[str] = []
    total = 0.0
    for index, item in enumerate(order.items, start=1):
        cost = item.fob_total if kind == InvoiceKind.FOB else item.freight_total
        total += cost
        # Lines with nothing to pay yet are left out but keep their number
        if cost == 0:
            continue
        product = next((p for p in products if p.id == item.product_id), None)
        name = product.name if product else "Unknown Product"
        attrs = "".join(f"-{a.value}" for a in item.selected_attributes)
        lines.append(f"{index}.{name}{attrs}-{currency}.{format_amount(cost)}")

    if kind == InvoiceKind.FOB:
        paybill = shop_settings.fob_paybill
    else:
        paybill = shop_settings.freight_paybill or shop_settings.fob_paybill

    body = "\n".join(lines)
    return (
        f"{greeting(now)} {client.first_name}. Kindly confirm your order below.\n\n"
        f"{body}\n\n"
        f"Total {currency}.{format_amount(total)}\n\n"
        f"*Payment details*\n"
        f"Paybill No.{paybill}\n"
        f"Account.No.{client.account_number}\n\n"
        f"Payment deadline is on the {format_deadline(deadline)}. Thankyou \U0001F60A"
    )
