"""
User, auth log and session schemas.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from shopdesk.schemas.base import Record


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    ORDER_ENTRY = "ORDER_ENTRY"


class AuthAction(str, Enum):
    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    LOGIN_FAILED = "LOGIN_FAILED"
    PASSWORD_CHANGE = "PASSWORD_CHANGE"
    RESET_REQUEST = "RESET_REQUEST"


class User(Record):
    """Staff account."""

    id: str
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    role: UserRole
    password_hash: Optional[str] = Field(None, alias="passwordHash")
    reset_token: Optional[str] = Field(None, alias="resetToken")
    reset_token_expiry: Optional[datetime] = Field(None, alias="resetTokenExpiry")


class AuthLog(Record):
    """Audit trail entry for authentication events."""

    id: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    email: str
    action: AuthAction
    details: Optional[str] = None


class Session(BaseModel):
    """The authenticated user context a mutation runs under."""

    user_id: str = Field(alias="userId")
    name: str
    email: str
    role: UserRole

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
