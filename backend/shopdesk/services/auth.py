"""
Staff accounts, login and the authentication audit trail.

Sessions are plain values handed to ``ShopStore``; no tokens are issued.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

from shopdesk.core.errors import AuthenticationError, NotFoundError, ValidationError
from shopdesk.core.logging import get_logger
from shopdesk.core.security import (
    generate_id,
    generate_reset_token,
    hash_password,
    require_role,
    verify_password,
)
from shopdesk.schemas.user import AuthAction, AuthLog, Session, User, UserRole
from shopdesk.services.store import ShopStore

logger = get_logger(__name__)

MIN_PASSWORD_LENGTH = 6
RESET_TOKEN_TTL = timedelta(hours=1)


def _session_for(user: User) -> Session:
    return Session(user_id=user.id, name=user.name, email=user.email, role=user.role)


def _check_password(password: str) -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
            field="password",
        )


class AuthService:
    """Account management over the store's ``users`` and ``authLogs`` collections."""

    def __init__(self, store: ShopStore) -> None:
        self.store = store

    def _find_by_email(self, email: str) -> Optional[User]:
        wanted = email.strip().lower()
        return next((u for u in self.store.state.users if u.email.lower() == wanted), None)

    async def _audit(self, email: str, action: AuthAction, details: Optional[str] = None) -> None:
        entry = AuthLog(id=generate_id("log"), email=email, action=action, details=details)
        state = self.store.state
        await self.store.commit(
            state.model_copy(update={"auth_logs": [*state.auth_logs, entry]}),
            "auth_logs",
        )

    async def _save_user(self, user: User) -> None:
        state = self.store.state
        users = [user if u.id == user.id else u for u in state.users]
        if not any(u.id == user.id for u in state.users):
            users.append(user)
        await self.store.commit(state.model_copy(update={"users": users}), "users")

    def has_users(self) -> bool:
        """False while the shop is in first-run setup mode."""
        return bool(self.store.state.users)

    async def register_user(
        self,
        name: str,
        email: str,
        password: str,
        role: UserRole,
    ) -> User:
        """
        Create a staff account.

        The very first account needs no session and must be an ADMIN; after
        that only an ADMIN session may register users.
        """
        role = UserRole(role)
        if self.has_users():
            require_role(self.store.session, UserRole.ADMIN)
        elif role != UserRole.ADMIN:
            raise ValidationError("The first account must be an ADMIN", field="role")

        if not name or not name.strip():
            raise ValidationError("Name is required", field="name")
        if not email or not email.strip():
            raise ValidationError("Email is required", field="email")
        _check_password(password)
        if self._find_by_email(email) is not None:
            raise ValidationError(f"User already exists: {email}", field="email")

        user = User(
            id=generate_id("usr"),
            name=name.strip(),
            email=email.strip().lower(),
            role=role,
            password_hash=hash_password(password),
        )
        await self._save_user(user)
        logger.info("User registered", user_id=user.id, role=role.value)
        return user

    def authenticate(self, email: str, password: str) -> Session:
        """Check credentials without touching the audit trail."""
        user = self._find_by_email(email or "")
        if user is None or not verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid email or password")
        return _session_for(user)

    async def login(self, email: str, password: str, role: UserRole) -> Session:
        """
        Log in as the given role and bind the session to the store.

        Every attempt, successful or not, is written to the audit trail.
        """
        role = UserRole(role)
        try:
            session = self.authenticate(email, password)
            if session.role != role:
                raise AuthenticationError(f"Account exists but is not a {role.value} account.")
        except AuthenticationError as e:
            logger.warning("Login failed", email=email, reason=e.message)
            await self._audit(email, AuthAction.LOGIN_FAILED, e.message)
            raise

        await self._audit(session.email, AuthAction.LOGIN_SUCCESS, f"Logged in as {role.value}")
        self.store.session = session
        logger.info("Login succeeded", user_id=session.user_id, role=role.value)
        return session

    def logout(self) -> None:
        self.store.session = None

    async def change_password(self, old_password: str, new_password: str) -> None:
        if self.store.session is None:
            raise AuthenticationError("Not logged in")
        user = self.store.state.find_user(self.store.session.user_id)
        if user is None:
            raise NotFoundError("User", self.store.session.user_id)
        if not verify_password(old_password, user.password_hash):
            raise AuthenticationError("Current password is incorrect")
        _check_password(new_password)

        await self._save_user(user.model_copy(update={"password_hash": hash_password(new_password)}))
        await self._audit(user.email, AuthAction.PASSWORD_CHANGE)
        logger.info("Password changed", user_id=user.id)

    async def request_password_reset(self, email: str) -> Optional[str]:
        """Issue a one-hour reset token. Unknown emails get None and no error."""
        user = self._find_by_email(email or "")
        if user is None:
            logger.info("Password reset requested for unknown email")
            return None

        token = generate_reset_token()
        await self._save_user(
            user.model_copy(
                update={
                    "reset_token": token,
                    "reset_token_expiry": datetime.now(timezone.utc) + RESET_TOKEN_TTL,
                }
            )
        )
        await self._audit(user.email, AuthAction.RESET_REQUEST)
        return token

    async def reset_password(self, token: str, new_password: str) -> None:
        now = datetime.now(timezone.utc)
        user = next(
            (
                u
                for u in self.store.state.users
                if token
                and u.reset_token == token
                and u.reset_token_expiry is not None
                and u.reset_token_expiry > now
            ),
            None,
        )
        if user is None:
            raise AuthenticationError("Reset token is invalid or has expired")
        _check_password(new_password)

        await self._save_user(
            user.model_copy(
                update={
                    "password_hash": hash_password(new_password),
                    "reset_token": None,
                    "reset_token_expiry": None,
                }
            )
        )
        await self._audit(user.email, AuthAction.PASSWORD_CHANGE, "Password reset")

    async def delete_user(self, user_id: str) -> None:
        session = require_role(self.store.session, UserRole.ADMIN)
        if session.user_id == user_id:
            raise ValidationError("You cannot delete your own account", field="userId")
        state = self.store.state
        if state.find_user(user_id) is None:
            raise NotFoundError("User", user_id)

        users = [u for u in state.users if u.id != user_id]
        await self.store.commit(state.model_copy(update={"users": users}), "users")
        logger.info("User deleted", user_id=user_id)
