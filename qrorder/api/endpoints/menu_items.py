"""Menu item endpoints."""

import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from qrorder.api.deps import get_caller
from qrorder.api.responses import ok
from qrorder.core.errors import AppError, InternalError
from qrorder.core.roles import PRIVILEGED_ROLES
from qrorder.db.session import get_db
from qrorder.schemas.menu import MenuItemCreate, MenuItemUpdate
from qrorder.services.menu_service import (
    delete_menu_item,
    get_menu_item,
    list_menu_items,
    menu_item_to_dto,
    update_menu_item,
    upsert_menu_item,
)
from qrorder.services.role_resolver import Caller
from qrorder.services.security_guards import assert_allowed, is_staff_or_admin

router: APIRouter = APIRouter()
logger = logging.getLogger(__name__)


@router.get("")
def get_menu_items(
    q: str | None = Query(default=None),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
) -> JSONResponse:
    """Customers see available items only; staff see the full menu."""
    try:
        items = list_menu_items(db, only_available=not is_staff_or_admin(caller.role), search=q)
    except SQLAlchemyError as exc:
        logger.exception("[MENU] GET /menu-items failed")
        raise InternalError("Failed to fetch menu items") from exc
    return ok([menu_item_to_dto(item) for item in items])


@router.get("/{item_id}")
def get_single_menu_item(item_id: str, db: Session = Depends(get_db)) -> JSONResponse:
    try:
        item = get_menu_item(db, item_id)
    except AppError:
        raise
    except SQLAlchemyError as exc:
        logger.exception("[MENU] GET /menu-items/%s failed", item_id)
        raise InternalError("Failed to fetch menu item") from exc
    return ok(menu_item_to_dto(item))


@router.post("")
def create_menu_item(
    payload: MenuItemCreate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
) -> JSONResponse:
    """Create a menu item or update the one with the same name."""
    assert_allowed(caller.role, PRIVILEGED_ROLES)
    try:
        item, created = upsert_menu_item(db, payload)
    except AppError:
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("[MENU] POST /menu-items failed for name=%s", payload.name)
        raise InternalError("Failed to save menu item") from exc
    return ok(menu_item_to_dto(item), status_code=201, message="Menu item created" if created else "Menu item updated")


@router.patch("/{item_id}")
def patch_menu_item(
    item_id: str,
    payload: MenuItemUpdate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
) -> JSONResponse:
    assert_allowed(caller.role, PRIVILEGED_ROLES)
    try:
        item = update_menu_item(db, item_id, payload)
    except AppError:
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("[MENU] PATCH /menu-items/%s failed", item_id)
        raise InternalError("Failed to update menu item") from exc
    return ok(menu_item_to_dto(item))


@router.delete("/{item_id}")
def remove_menu_item(
    item_id: str,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
) -> JSONResponse:
    assert_allowed(caller.role, PRIVILEGED_ROLES)
    try:
        delete_menu_item(db, item_id)
    except AppError:
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("[MENU] DELETE /menu-items/%s failed", item_id)
        raise InternalError("Failed to delete menu item") from exc
    return ok({"id": item_id}, message="Menu item deleted")
