"""
Catalog schemas - a monthly import batch.
"""
from datetime import datetime, timezone
from enum import Enum

from pydantic import Field

from shopdesk.schemas.base import Record


class CatalogStatus(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"


class Catalog(Record):
    """A named shipment batch ("month") with a closing date that doubles as payment deadline."""

    id: str
    name: str = Field(..., min_length=1)
    closing_date: datetime = Field(alias="closingDate")
    status: CatalogStatus = CatalogStatus.OPEN
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        alias="createdAt",
    )
