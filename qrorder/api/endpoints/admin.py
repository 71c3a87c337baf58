"""Account administration and maintenance endpoints."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from qrorder.api.deps import get_caller, get_identity, get_settings
from qrorder.api.responses import ok
from qrorder.core.config import Settings
from qrorder.core.errors import AppError, InternalError
from qrorder.core.roles import Role
from qrorder.db.session import get_db
from qrorder.schemas.auth import AccountCreate, AccountDTO
from qrorder.services.account_service import create_account
from qrorder.services.identity import IdentityProvider
from qrorder.services.maintenance import reconcile_orphaned_orders, run_table_normalization
from qrorder.services.role_resolver import Caller
from qrorder.services.security_guards import assert_allowed
from qrorder.services.table_allocator import table_to_dto

router: APIRouter = APIRouter()
logger = logging.getLogger(__name__)
MAINTENANCE_ROLES: set[Role] = {Role.OWNER, Role.ADMIN}


@router.post("/users")
def create_user_account(
    payload: AccountCreate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
    identity: IdentityProvider = Depends(get_identity),
) -> JSONResponse:
    """Create a staff, admin or owner account."""
    try:
        user, role = create_account(db, identity, payload, caller)
    except AppError:
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("[AUTH] POST /admin/users failed")
        raise InternalError("Failed to create user") from exc
    return ok(AccountDTO(id=user.id, email=user.email, role=role.value), status_code=201)


@router.post("/maintenance/orphaned-orders")
def reconcile_orders(
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    """Cancel orders whose lines were never written."""
    assert_allowed(caller.role, MAINTENANCE_ROLES)
    try:
        cancelled = reconcile_orphaned_orders(db, caller, settings.orphan_order_grace_seconds)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("[ORDERS] Orphaned order reconciliation failed")
        raise InternalError("Reconciliation failed") from exc
    return ok({"cancelledOrderIds": cancelled})


@router.post("/maintenance/tables/normalize")
def normalize_table_numbers(
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    assert_allowed(caller.role, MAINTENANCE_ROLES)
    try:
        tables, changed = run_table_normalization(db, caller)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("[TABLES] Table normalization failed")
        raise InternalError("Failed to normalize tables") from exc
    return ok({"changed": changed, "tables": [table_to_dto(table, settings.public_base_url) for table in tables]})
