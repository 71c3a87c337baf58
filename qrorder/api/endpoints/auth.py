"""Authentication endpoints."""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from qrorder.api.deps import get_caller, get_identity, get_settings
from qrorder.api.responses import ok
from qrorder.core.config import Settings
from qrorder.core.errors import AuthenticationRequired, InternalError, NotFoundError, ValidationError
from qrorder.core.roles import BASIC_ROLES, Role, parse_role
from qrorder.db.session import get_db
from qrorder.schemas.auth import LoginRequest, RoleHintRequest, TokenResponse
from qrorder.services.identity import IdentityProvider, role_claim
from qrorder.services.role_resolver import Caller

router: APIRouter = APIRouter()
logger = logging.getLogger(__name__)

ROLE_HINT_MAX_AGE: int = 60 * 60 * 24 * 30


@router.post("/login")
def login(
    payload: LoginRequest,
    request: Request,
    db: Session = Depends(get_db),
    identity: IdentityProvider = Depends(get_identity),
) -> JSONResponse:
    if not payload.email.strip() or not payload.password:
        raise ValidationError("Email and password are required")
    try:
        user = identity.authenticate(db, payload.email, payload.password)
    except SQLAlchemyError as exc:
        logger.exception("[AUTH] Login lookup failed for %s", payload.email)
        raise InternalError("Unable to complete login") from exc
    if user is None:
        raise AuthenticationRequired("Incorrect email or password")

    token = identity.issue_token(user)
    request.session["access_token"] = token
    role = role_claim(user.app_metadata, user.user_metadata)
    return ok(TokenResponse(access_token=token, role=role.value))


@router.post("/logout")
def logout(request: Request) -> JSONResponse:
    request.session.clear()
    return ok(None, message="Logged out")


@router.get("/role")
def get_role(
    request: Request,
    caller: Caller = Depends(get_caller),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    """Return the UI role hint next to the role the server actually trusts."""
    hint = parse_role(request.cookies.get(settings.role_hint_cookie)) or Role.CUSTOMER
    return ok({"role": hint.value, "resolvedRole": caller.role.value})


@router.post("/role")
def set_role_hint(
    payload: RoleHintRequest,
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    """Development helper: store a role hint cookie for client-side UI gating."""
    if settings.is_production:
        raise NotFoundError("Not found")
    role = parse_role(payload.role or Role.CUSTOMER.value)
    if role not in BASIC_ROLES:
        raise ValidationError("Invalid role")

    response = ok({"role": role.value})
    response.set_cookie(
        settings.role_hint_cookie,
        role.value,
        max_age=ROLE_HINT_MAX_AGE,
        path="/",
        samesite="lax",
        httponly=False,
    )
    return response
