"""Caller roles and their parsing at the trust boundary."""

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    STAFF = "staff"
    CUSTOMER = "customer"
    ANONYMOUS = "anonymous"


# Roles accepted from development overrides and the role hint cookie.
BASIC_ROLES: frozenset[Role] = frozenset({Role.ADMIN, Role.STAFF, Role.CUSTOMER})
PRIVILEGED_ROLES: frozenset[Role] = frozenset({Role.OWNER, Role.ADMIN, Role.STAFF})
ACCOUNT_ROLES: frozenset[Role] = frozenset({Role.OWNER, Role.ADMIN, Role.STAFF})


def parse_role(value: object) -> Role | None:
    """Parse a raw claim or header value into a Role, or None if unknown."""
    if value is None:
        return None
    normalized = str(value).strip().lower()
    try:
        return Role(normalized)
    except ValueError:
        return None
