"""Resolve the caller's role from request credentials.

Precedence:

1. private-network override (only when enabled and the peer address is
   loopback or private),
2. verified bearer token or session credential,
3. override without the host restriction when not running in production,
4. ``anonymous``.

Resolution never raises; verification failures degrade to ``anonymous``.
"""

from __future__ import annotations

import ipaddress
import logging
import re
import uuid
from dataclasses import dataclass

from fastapi import Request
from sqlalchemy.orm import Session

from qrorder.core.config import Settings
from qrorder.core.roles import BASIC_ROLES, Role, parse_role
from qrorder.services.identity import IdentityProvider, role_claim

logger = logging.getLogger(__name__)

_BEARER_RE = re.compile(r"^Bearer\s+(.+)$", re.IGNORECASE)
_ROLE_SCHEME_RE = re.compile(r"^Role\s*=?\s*(\w+)\s*$", re.IGNORECASE)


@dataclass(frozen=True)
class Caller:
    role: Role
    user_id: str | None = None


ANONYMOUS_CALLER = Caller(role=Role.ANONYMOUS)


def is_private_host(host: str | None) -> bool:
    """Return whether an address is loopback or inside a private range."""
    if not host:
        return False
    host = host.strip("[]").lower()
    if host == "localhost":
        return True
    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        return False
    return address.is_loopback or address.is_private


def override_role(request: Request) -> Role | None:
    """Read a QA role override from header, pseudo auth scheme or query string."""
    candidates: list[str] = [request.headers.get("x-role", "")]
    role_scheme = _ROLE_SCHEME_RE.match(request.headers.get("authorization", "").strip())
    if role_scheme:
        candidates.append(role_scheme.group(1))
    candidates.append(request.query_params.get("role", ""))

    for candidate in candidates:
        role = parse_role(candidate)
        if role in BASIC_ROLES:
            return role
    return None


def _override_user_id(request: Request) -> str | None:
    """Accept an ``x-user-id`` override only when it is a well-formed account id."""
    raw = request.headers.get("x-user-id", "").strip()
    if not raw:
        return None
    try:
        return str(uuid.UUID(raw))
    except ValueError:
        return None


def extract_token(request: Request, settings: Settings) -> str | None:
    """Return the bearer token from the header, the session or the token cookie."""
    bearer = _BEARER_RE.match(request.headers.get("authorization", "").strip())
    if bearer:
        return bearer.group(1).strip()
    if "session" in request.scope:
        session_token = request.session.get("access_token")
        if session_token:
            return str(session_token)
    return request.cookies.get(settings.access_token_cookie) or None


def resolve_caller(
    request: Request,
    db: Session,
    settings: Settings,
    identity: IdentityProvider,
) -> Caller:
    """Resolve the caller for one request."""
    # The peer address, not the Host header, decides whether the caller is local.
    peer = request.client.host if request.client else None
    if settings.role_override_private_network and is_private_host(peer):
        role = override_role(request)
        if role is not None:
            return Caller(role=role)

    token = extract_token(request, settings)
    if token:
        try:
            principal = identity.verify(db, token)
        except Exception as exc:
            logger.debug("[AUTH] Credential rejected: %s", exc)
            db.rollback()
        else:
            return Caller(
                role=role_claim(principal.app_metadata, principal.user_metadata),
                user_id=principal.user_id,
            )

    if not settings.is_production:
        role = override_role(request)
        if role is not None:
            return Caller(role=role, user_id=_override_user_id(request))

    return ANONYMOUS_CALLER


def resolve_role(
    request: Request,
    db: Session,
    settings: Settings,
    identity: IdentityProvider,
) -> Role:
    return resolve_caller(request, db, settings, identity).role
