"""
Product schemas.
"""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from shopdesk.schemas.base import Record


class StockStatus(str, Enum):
    PENDING = "PENDING"
    ARRIVED = "ARRIVED"


class DynamicAttribute(BaseModel):
    """
    A named attribute. On a product the value is a comma separated list of
    allowed values; on an order line it is the single value picked.
    """

    key: str
    value: str = ""

    model_config = ConfigDict(frozen=True)

    @property
    def options(self) -> list[str]:
        """Allowed values listed on a product attribute."""
        return [v.strip() for v in self.value.split(",") if v.strip()]


class Product(Record):
    """Catalog product with its authoritative FOB price and freight rate."""

    id: str
    catalog_id: str = Field(alias="catalogId")
    name: str = Field(..., min_length=1)
    description: str = ""
    image_url: str = Field("", alias="imageUrl")
    category: str = ""
    attributes: list[DynamicAttribute] = Field(default_factory=list)
    fob_price: float = Field(..., ge=0, alias="fobPrice")
    freight_charge: float = Field(0.0, ge=0, alias="freightCharge")
    stock_status: StockStatus = Field(StockStatus.PENDING, alias="stockStatus")
    # Both keyed by canonical variant key, e.g. "Color:Red, Size:M"
    stock_counts: dict[str, int] = Field(default_factory=dict, alias="stockCounts")
    stock_sold: dict[str, int] = Field(default_factory=dict, alias="stockSold")

    def attribute(self, key: str) -> Optional[DynamicAttribute]:
        return next((a for a in self.attributes if a.key == key), None)
