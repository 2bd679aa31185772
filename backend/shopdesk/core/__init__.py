"""
Core package containing configuration, database, security, errors and logging.
"""
from shopdesk.core.config import settings
from shopdesk.core.database import Base, get_db_context
from shopdesk.core.errors import (
    AuthenticationError,
    DuplicateTransactionError,
    ImportPayloadError,
    NotFoundError,
    PermissionDeniedError,
    PersistenceError,
    ShopDeskError,
    ValidationError,
)
from shopdesk.core.logging import configure_logging, get_logger
from shopdesk.core.security import (
    generate_id,
    hash_password,
    require_role,
    verify_password,
)

__all__ = [
    "settings",
    "Base",
    "get_db_context",
    "configure_logging",
    "get_logger",
    "generate_id",
    "hash_password",
    "require_role",
    "verify_password",
    "ShopDeskError",
    "ValidationError",
    "NotFoundError",
    "PersistenceError",
    "ImportPayloadError",
    "AuthenticationError",
    "PermissionDeniedError",
    "DuplicateTransactionError",
]
