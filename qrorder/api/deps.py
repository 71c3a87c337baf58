"""Request-scoped dependencies."""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from qrorder.core.config import Settings
from qrorder.db.session import get_db
from qrorder.services.identity import IdentityProvider
from qrorder.services.role_resolver import Caller, resolve_caller


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_identity(request: Request) -> IdentityProvider:
    return request.app.state.identity


def get_caller(
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    identity: IdentityProvider = Depends(get_identity),
) -> Caller:
    """Resolve the caller once per request; never fails."""
    return resolve_caller(request, db, settings, identity)
