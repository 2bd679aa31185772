"""
Services package for business logic layer.
"""
from shopdesk.services.auth import AuthService
from shopdesk.services.cascade import apply_fob_price_change, apply_freight_rate_change
from shopdesk.services.payments import apply_payment, derive_payment_status, match_client
from shopdesk.services.stock import reconcile, variant_key
from shopdesk.services.store import ShopStore

__all__ = [
    "ShopStore",
    "AuthService",
    "apply_payment",
    "derive_payment_status",
    "match_client",
    "apply_freight_rate_change",
    "apply_fob_price_change",
    "reconcile",
    "variant_key",
]
