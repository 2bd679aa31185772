"""
Security utilities: password hashing, identifiers and role checks.
"""
import secrets
from typing import TYPE_CHECKING, Optional

from passlib.context import CryptContext

from shopdesk.core.config import settings
from shopdesk.core.errors import PermissionDeniedError
from shopdesk.core.logging import get_logger

if TYPE_CHECKING:
    from shopdesk.schemas.user import Session, UserRole

logger = get_logger(__name__)

# Password hashing
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify a password against its hash."""
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Not a recognised hash, e.g. a legacy record without one
        logger.warning("Unrecognised password hash format")
        return False


def hash_password(password: str) -> str:
    """Hash a password for storage."""
    return pwd_context.hash(password)


def generate_id(prefix: str) -> str:
    """Generate a short unique record id such as ``ord-3f9a1c2b7d``."""
    return f"{prefix}-{secrets.token_hex(5)}"


def generate_reset_token() -> str:
    """Generate a password reset token."""
    return secrets.token_urlsafe(32)


def require_role(session: Optional["Session"], *roles: "UserRole") -> "Session":
    """
    Ensure the session belongs to one of the given roles.

    Raises:
        PermissionDeniedError: If there is no session or its role is not allowed.
    """
    allowed = {r.value for r in roles}
    if session is None or session.role.value not in allowed:
        role = session.role.value if session else None
        required = " or ".join(sorted(allowed))
        logger.warning("Access denied", role=role, required=required)
        raise PermissionDeniedError(role, required)
    return session
