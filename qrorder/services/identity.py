"""Local identity provider: accounts, role claims and token verification."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from qrorder.core.config import Settings
from qrorder.core.roles import Role, parse_role
from qrorder.core.security import (
    InvalidTokenError,
    create_access_token,
    get_password_hash,
    verify_password,
    verify_token,
)
from qrorder.models.user import User
from qrorder.utils.time import utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    """Verified identity of a caller."""

    user_id: str
    email: str
    app_metadata: dict[str, Any] = field(default_factory=dict)
    user_metadata: dict[str, Any] = field(default_factory=dict)


def role_claim(app_metadata: dict[str, Any] | None, user_metadata: dict[str, Any] | None) -> Role:
    """Read the role claim; app metadata wins, an absent or unknown claim is ``customer``."""
    raw = (app_metadata or {}).get("role") or (user_metadata or {}).get("role")
    role = parse_role(raw)
    if role is None or role is Role.ANONYMOUS:
        return Role.CUSTOMER
    return role


class IdentityProvider:
    """Issues and verifies credentials for accounts stored in ``users``."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def verify(self, db: Session, token: str) -> Principal:
        """Verify a bearer token and load its principal.

        Raises ``InvalidTokenError`` for malformed, expired or orphaned tokens.
        """
        payload = verify_token(token, self.settings)
        user_id = payload.get("sub")
        if not user_id:
            raise InvalidTokenError("Token has no subject")
        user = db.get(User, str(user_id))
        if user is None:
            raise InvalidTokenError("Token subject no longer exists")
        return Principal(
            user_id=user.id,
            email=user.email,
            app_metadata=dict(user.app_metadata or {}),
            user_metadata=dict(user.user_metadata or {}),
        )

    def authenticate(self, db: Session, email: str, password: str) -> User | None:
        user = db.scalar(select(User).where(User.email == email.strip().lower()).limit(1))
        if user is None or not verify_password(password, user.password_hash):
            return None
        user.last_login_at = utc_now()
        db.commit()
        db.refresh(user)
        return user

    def issue_token(self, user: User) -> str:
        return create_access_token({"sub": user.id}, self.settings)

    def get_user_by_email(self, db: Session, email: str) -> User | None:
        return db.scalar(select(User).where(User.email == email.strip().lower()).limit(1))

    def has_owner(self, db: Session) -> bool:
        """Return whether any account carries the owner claim."""
        for app_metadata, user_metadata in db.execute(select(User.app_metadata, User.user_metadata)):
            if role_claim(app_metadata, user_metadata) is Role.OWNER:
                return True
        return False

    def create_user(self, db: Session, *, email: str, password: str, role: Role) -> User:
        """Create a confirmed account with the role set in both metadata scopes."""
        user = User(
            email=email.strip().lower(),
            password_hash=get_password_hash(password),
            app_metadata={"role": role.value},
            user_metadata={"role": role.value},
        )
        db.add(user)
        db.flush()
        return user
