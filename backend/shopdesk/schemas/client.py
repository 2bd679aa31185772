"""
Client schemas.
"""
from typing import Optional

from pydantic import Field

from shopdesk.schemas.base import Record


class Client(Record):
    """A customer; the phone number doubles as the paybill account number."""

    id: str
    name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    email: Optional[str] = None

    @property
    def first_name(self) -> str:
        return self.name.split(" ")[0]

    @property
    def account_number(self) -> str:
        return self.phone.replace("+", "")
