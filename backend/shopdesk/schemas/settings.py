"""
Shop settings schemas.
"""
from pydantic import BaseModel, ConfigDict, Field

from shopdesk.schemas.base import Record


class ThemePalette(BaseModel):
    """Sidebar and button colours."""

    name: str = "Gold"
    primary: str = "#C49A46"
    secondary: str = "#111111"
    accent: str = "#DAA520"
    text: str = "#F3F4F6"

    model_config = ConfigDict(populate_by_name=True)


class ShopSettings(Record):
    """Singleton shop profile. Two paybill/account pairs: one for FOB, one for freight."""

    shop_name: str = Field("Imani Homes & Imports", alias="shopName")
    phone_numbers: list[str] = Field(
        default_factory=lambda: ["+254 700 000 000"],
        alias="phoneNumbers",
    )
    logo_url: str = Field("", alias="logoUrl")
    fob_paybill: str = Field("247247", alias="fobPaybill")
    fob_account_number: str = Field("", alias="fobAccountNumber")
    freight_paybill: str = Field("", alias="freightPaybill")
    freight_account_number: str = Field("", alias="freightAccountNumber")
    theme: ThemePalette = Field(default_factory=ThemePalette)
