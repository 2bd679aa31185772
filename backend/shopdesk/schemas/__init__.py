"""
Pydantic schemas package.
"""
from shopdesk.schemas.base import Record
from shopdesk.schemas.catalog import Catalog, CatalogStatus
from shopdesk.schemas.client import Client
from shopdesk.schemas.ledger import (
    AllocationResult,
    CascadeResult,
    DashboardStats,
    FreightRateRequest,
    OperationResult,
    PaymentRequest,
    ProductSummary,
    StockReconciliation,
)
from shopdesk.schemas.order import Order, OrderItem, OrderStatus, PaymentStatus
from shopdesk.schemas.payment import PaymentTransaction
from shopdesk.schemas.product import DynamicAttribute, Product, StockStatus
from shopdesk.schemas.settings import ShopSettings, ThemePalette
from shopdesk.schemas.state import (
    COLLECTION_FIELDS,
    SETTINGS_DOCUMENT,
    CollectionName,
    ShopState,
)
from shopdesk.schemas.user import AuthAction, AuthLog, Session, User, UserRole

__all__ = [
    "Record",
    # Entities
    "Catalog",
    "CatalogStatus",
    "Product",
    "DynamicAttribute",
    "StockStatus",
    "Client",
    "Order",
    "OrderItem",
    "OrderStatus",
    "PaymentStatus",
    "PaymentTransaction",
    "ShopSettings",
    "ThemePalette",
    # Identity
    "User",
    "UserRole",
    "AuthLog",
    "AuthAction",
    "Session",
    # State
    "ShopState",
    "CollectionName",
    "COLLECTION_FIELDS",
    "SETTINGS_DOCUMENT",
    # Ledger
    "StockReconciliation",
    "AllocationResult",
    "CascadeResult",
    "PaymentRequest",
    "FreightRateRequest",
    "OperationResult",
    "ProductSummary",
    "DashboardStats",
]
