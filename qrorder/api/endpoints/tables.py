"""Table endpoints."""

import logging

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from qrorder.api.deps import get_caller, get_settings
from qrorder.api.responses import ok
from qrorder.core.config import Settings
from qrorder.core.errors import AppError, InternalError, TableAllocationError, ValidationError
from qrorder.core.roles import PRIVILEGED_ROLES
from qrorder.db.session import get_db
from qrorder.schemas.table import TableCreate, TableUpdate
from qrorder.services.role_resolver import Caller
from qrorder.services.security_guards import assert_allowed
from qrorder.services.table_allocator import (
    create_table_with_number,
    create_tables,
    delete_table,
    list_tables,
    table_to_dto,
    update_table,
)

router: APIRouter = APIRouter()
logger = logging.getLogger(__name__)


@router.get("")
def get_tables(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    """List tables in numeric order, repairing the numbering when enabled."""
    try:
        tables = list_tables(db, self_heal=settings.tables_self_heal_on_read)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("[TABLES] GET /tables failed")
        raise InternalError("Failed to fetch tables") from exc
    return ok([table_to_dto(table, settings.public_base_url) for table in tables])


@router.post("")
def post_tables(
    payload: TableCreate | list[TableCreate] = Body(...),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    """Create one table, ``bulkCount`` tables, or one table per array entry."""
    assert_allowed(caller.role, PRIVILEGED_ROLES)
    entries = payload if isinstance(payload, list) else [payload]
    if not entries:
        raise ValidationError("No tables requested")
    first = entries[0]

    try:
        if not isinstance(payload, list) and payload.table_number is not None:
            tables = [
                create_table_with_number(
                    db,
                    str(payload.table_number),
                    capacity=payload.capacity,
                    qr_code_url=payload.qr_code_url,
                )
            ]
        else:
            count = len(entries)
            if len(entries) == 1 and first.bulk_count is not None:
                count = first.bulk_count
            tables = create_tables(db, count, capacity=first.capacity, qr_code_url=first.qr_code_url)
    except TableAllocationError:
        logger.error("[TABLES] POST /tables gave up after retries")
        raise
    except AppError:
        raise
    except SQLAlchemyError as exc:
        logger.exception("[TABLES] POST /tables failed")
        raise TableAllocationError("Failed to create tables") from exc
    return ok([table_to_dto(table, settings.public_base_url) for table in tables], status_code=201, message="Tables created")


@router.patch("/{table_id}")
def patch_table(
    table_id: str,
    payload: TableUpdate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    assert_allowed(caller.role, PRIVILEGED_ROLES)
    try:
        table = update_table(
            db,
            table_id,
            status=payload.status,
            capacity=payload.capacity,
            qr_code_url=payload.qr_code_url,
            fields_set=payload.model_fields_set,
        )
    except AppError:
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("[TABLES] PATCH /tables/%s failed", table_id)
        raise InternalError("Failed to update table") from exc
    return ok(table_to_dto(table, settings.public_base_url), message="Table updated")


@router.delete("/{table_id}")
def remove_table(
    table_id: str,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
) -> JSONResponse:
    assert_allowed(caller.role, PRIVILEGED_ROLES)
    try:
        delete_table(db, table_id)
    except AppError:
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("[TABLES] DELETE /tables/%s failed", table_id)
        raise InternalError("Failed to delete table") from exc
    return ok({"id": table_id}, message="Table deleted")
