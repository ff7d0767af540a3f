# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Authentication service — credential checks, sessions, and actor identity."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from passlib.context import CryptContext

from roster.core.config import settings
from roster.core.errors import AuthenticationError, ValidationError
from roster.core.logging import get_logger
from roster.metrics.prometheus import LOGINS_TOTAL
from roster.models.domain import Identity, Role
from roster.repositories.session_repository import SessionRepository
from roster.repositories.user_repository import UserRepository

logger = get_logger(__name__)


pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.PASSWORD_HASH_ROUNDS,
)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    return pwd_context.verify(password, hashed_password)


def public_user(user: Dict[str, Any]) -> Dict[str, Any]:
    """User record without credentials."""
    return {k: v for k, v in user.items() if k != "password_hash"}


def identity_for(user: Dict[str, Any]) -> Identity:
    return Identity(
        display_name=user["name"],
        role=Role(user["role"]),
        bus_id=user.get("bus_id"),
        user_id=user["id"],
    )


class AuthService:
    def __init__(self, user_repo: UserRepository, session_repo: SessionRepository):
        self._users = user_repo
        self._sessions = session_repo

    def login(self, email: str, password: str) -> Dict[str, Any]:
        if not email or not password:
            raise ValidationError("Email and password required")
        user = self._users.get_by_email(email)
        if user is None or not verify_password(password, user["password_hash"]):
            LOGINS_TOTAL.labels(method="password", status="rejected").inc()
            logger.info("Login rejected: email=%s", email)
            raise AuthenticationError("Invalid email or password")
        return self._open_session(user, method="password")

    def login_with_magic_link(self, email: str) -> Dict[str, Any]:
        """Demo magic link: a known email is logged in straight away."""
        if not email:
            raise ValidationError("Email required")
        user = self._users.get_by_email(email)
        if user is None:
            LOGINS_TOTAL.labels(method="magic_link", status="rejected").inc()
            raise AuthenticationError("Email not found in our system")
        return self._open_session(user, method="magic_link")

    def logout(self, api_key: str) -> bool:
        revoked = self._sessions.revoke(api_key)
        if revoked:
            logger.info("Session closed")
        return revoked

    def authenticate(self, api_key: Optional[str]) -> Identity:
        """Resolve an API key to the acting identity. Raises AuthenticationError."""
        if not api_key:
            raise AuthenticationError("Missing API key. Provide X-API-Key header.")
        user_id = self._sessions.resolve(api_key)
        if user_id is None:
            raise AuthenticationError("Invalid API key.")
        user = self._users.get_by_id(user_id)
        if user is None:
            self._sessions.revoke(api_key)
            raise AuthenticationError("Account no longer exists.")
        return identity_for(user)

    def _open_session(self, user: Dict[str, Any], method: str) -> Dict[str, Any]:
        user["last_login"] = datetime.now(timezone.utc).isoformat()
        api_key = self._sessions.create(user["id"])
        LOGINS_TOTAL.labels(method=method, status="success").inc()
        logger.info("Login successful: user=%s, role=%s, method=%s", user["id"], user["role"], method)
        return {
            "api_key": api_key,
            "user": public_user(user),
            "message": "Login successful",
        }
