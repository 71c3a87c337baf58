"""Centralized role checks for mutating operations."""

from __future__ import annotations

from collections.abc import Iterable

from qrorder.core.errors import AuthorizationError, ValidationError
from qrorder.core.roles import PRIVILEGED_ROLES, Role


def is_staff_or_admin(role: Role) -> bool:
    return role in PRIVILEGED_ROLES


def assert_allowed(role: Role, allowed_roles: Iterable[Role]) -> None:
    """Ensure role is one of allowed roles."""
    if role not in set(allowed_roles):
        raise AuthorizationError("Forbidden")


def ensure_can_create_account(caller_role: Role, new_role: Role, *, has_owner: bool) -> None:
    """Apply the account creation rules.

    Before any owner exists only an owner may be created, and without
    credentials. Afterwards owners and admins may create accounts and only an
    owner may create another owner.
    """
    if not has_owner:
        if new_role is not Role.OWNER:
            raise ValidationError("First account must be owner")
        return

    assert_allowed(caller_role, {Role.OWNER, Role.ADMIN})
    if new_role is Role.OWNER and caller_role is not Role.OWNER:
        raise AuthorizationError("Only owner can create owner")
