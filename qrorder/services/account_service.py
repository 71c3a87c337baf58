"""Account provisioning with the first-owner bootstrap rule."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from qrorder.core.errors import ValidationError
from qrorder.core.roles import ACCOUNT_ROLES, Role, parse_role
from qrorder.models.user import User
from qrorder.schemas.auth import AccountCreate
from qrorder.services.audit_service import log_action
from qrorder.services.identity import IdentityProvider
from qrorder.services.role_resolver import Caller
from qrorder.services.security_guards import ensure_can_create_account

logger = logging.getLogger(__name__)


def parse_account_role(value: str | None) -> Role:
    role = parse_role(value or Role.STAFF.value)
    if role not in ACCOUNT_ROLES:
        raise ValidationError("Invalid role")
    return role


def create_account(
    db: Session,
    identity: IdentityProvider,
    payload: AccountCreate,
    caller: Caller,
) -> tuple[User, Role]:
    """Create an account after validating input and applying the bootstrap rule."""
    email = payload.email.strip()
    password = payload.password.strip()
    if not email or not password:
        raise ValidationError("email & password required")
    new_role = parse_account_role(payload.role)

    has_owner = identity.has_owner(db)
    ensure_can_create_account(caller.role, new_role, has_owner=has_owner)

    if identity.get_user_by_email(db, email) is not None:
        raise ValidationError("Email already registered")

    user = identity.create_user(db, email=email, password=password, role=new_role)
    log_action(
        db,
        actor=caller,
        action_type="account.create",
        subject_id=user.id,
        after_snapshot={"email": user.email, "role": new_role.value},
    )
    db.commit()
    db.refresh(user)
    if not has_owner:
        logger.warning("[BOOTSTRAP] First owner account created: %s", user.email)
    else:
        logger.info("[AUTH] Account created email=%s role=%s by %s", user.email, new_role.value, caller.role.value)
    return user, new_role
