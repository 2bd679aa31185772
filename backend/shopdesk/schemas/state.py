"""
Whole-application state and the collection names it persists under.
"""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from shopdesk.schemas.catalog import Catalog
from shopdesk.schemas.client import Client
from shopdesk.schemas.order import Order
from shopdesk.schemas.payment import PaymentTransaction
from shopdesk.schemas.product import Product
from shopdesk.schemas.settings import ShopSettings
from shopdesk.schemas.user import AuthLog, User


class CollectionName(str, Enum):
    """Keys the persistence collaborator stores collections under."""

    CATALOGS = "catalogs"
    PRODUCTS = "products"
    CLIENTS = "clients"
    ORDERS = "orders"
    PAYMENTS = "payments"
    USERS = "users"
    AUTH_LOGS = "authLogs"


# The settings singleton is stored as a document, not a collection
SETTINGS_DOCUMENT = "settings"

# State attribute -> (collection, record type)
COLLECTION_FIELDS: dict[str, tuple[CollectionName, type]] = {
    "catalogs": (CollectionName.CATALOGS, Catalog),
    "products": (CollectionName.PRODUCTS, Product),
    "clients": (CollectionName.CLIENTS, Client),
    "orders": (CollectionName.ORDERS, Order),
    "payments": (CollectionName.PAYMENTS, PaymentTransaction),
    "users": (CollectionName.USERS, User),
    "auth_logs": (CollectionName.AUTH_LOGS, AuthLog),
}


class ShopState(BaseModel):
    """
    Immutable snapshot of every collection.

    Mutations never edit a snapshot in place; they build a new one with
    ``model_copy(update=...)``.
    """

    catalogs: list[Catalog] = Field(default_factory=list)
    products: list[Product] = Field(default_factory=list)
    clients: list[Client] = Field(default_factory=list)
    orders: list[Order] = Field(default_factory=list)
    payments: list[PaymentTransaction] = Field(default_factory=list)
    users: list[User] = Field(default_factory=list)
    auth_logs: list[AuthLog] = Field(default_factory=list)
    shop_settings: ShopSettings = Field(default_factory=ShopSettings)

    model_config = ConfigDict(frozen=True)

    def find_catalog(self, catalog_id: str) -> Optional[Catalog]:
        return next((c for c in self.catalogs if c.id == catalog_id), None)

    def find_product(self, product_id: str) -> Optional[Product]:
        return next((p for p in self.products if p.id == product_id), None)

    def find_client(self, client_id: str) -> Optional[Client]:
        return next((c for c in self.clients if c.id == client_id), None)

    def find_order(self, order_id: str) -> Optional[Order]:
        return next((o for o in self.orders if o.id == order_id), None)

    def find_user(self, user_id: str) -> Optional[User]:
        return next((u for u in self.users if u.id == user_id), None)
