"""
API routers package.
"""
from shopdesk.routers.backup import router as backup_router
from shopdesk.routers.collections import router as collections_router
from shopdesk.routers.health import router as health_router
from shopdesk.routers.ledger import router as ledger_router

__all__ = [
    "health_router",
    "ledger_router",
    "backup_router",
    "collections_router",
]
