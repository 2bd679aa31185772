"""
M-Pesa confirmation SMS parsing.
"""
import re
from datetime import datetime, timezone
from typing import Optional

from shopdesk.core.errors import ValidationError
from shopdesk.core.security import generate_id
from shopdesk.schemas.client import Client
from shopdesk.schemas.payment import PaymentTransaction

TRANSACTION_CODE_RE = re.compile(r"([A-Z0-9]{10})")
AMOUNT_RE = re.compile(r"Ksh([\d,]+(\.\d{2})?)")

INVALID_MESSAGE = "Invalid M-Pesa message format. Needs Code and Ksh Amount."


def parse_mpesa_message(
    message: str,
    client: Optional[Client] = None,
    now: Optional[datetime] = None,
) -> PaymentTransaction:
    """
    Build a payment from a pasted M-Pesa confirmation.

    The first ten-character upper-case alphanumeric run is the transaction
    code and the first ``Ksh`` figure is the amount. When a client is given
    the payment is tied to them directly.
    """
    code_match = TRANSACTION_CODE_RE.search(message or "")
    amount_match = AMOUNT_RE.search(message or "")
    if not code_match or not amount_match:
        raise ValidationError(INVALID_MESSAGE, field="rawMessage")

    amount = float(amount_match.group(1).replace(",", ""))
    if amount <= 0:
        raise ValidationError(INVALID_MESSAGE, field="rawMessage")

    return PaymentTransaction(
        id=generate_id("pay"),
        transaction_code=code_match.group(1),
        amount=amount,
        payer_name=client.name if client else "",
        date=now or datetime.now(timezone.utc),
        client_id=client.id if client else None,
        raw_message=message,
    )
