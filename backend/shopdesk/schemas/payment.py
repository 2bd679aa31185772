"""
Payment schemas.
"""
from datetime import datetime, timezone
from typing import Optional

from pydantic import Field

from shopdesk.schemas.base import Record


class PaymentTransaction(Record):
    """An incoming payment, usually an M-Pesa receipt pasted by staff."""

    id: str
    transaction_code: str = Field(..., min_length=1, alias="transactionCode")
    amount: float = Field(..., gt=0)
    payer_name: str = Field("", alias="payerName")
    date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    client_id: Optional[str] = Field(None, alias="clientId")
    raw_message: str = Field("", alias="rawMessage")
