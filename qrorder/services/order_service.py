"""Order creation, listing and status persistence."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from qrorder.core.errors import InternalError, NotFoundError, ValidationError
from qrorder.core.roles import PRIVILEGED_ROLES
from qrorder.models.menu import MenuItem
from qrorder.models.order import Order, OrderItem
from qrorder.schemas.order import OrderCreate, OrderDTO
from qrorder.services.audit_service import log_action
from qrorder.services.notifications import publish_order_change
from qrorder.services.order_builder import DEFAULT_ITEM_LABEL, ZERO, build_order_dto, to_decimal
from qrorder.services.order_status import INITIAL_STATUS, normalize_status, transition
from qrorder.services.role_resolver import Caller
from qrorder.services.security_guards import assert_allowed
from qrorder.utils.time import isoformat_or_none, utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderLine:
    menu_item_id: str | None
    quantity: int
    unit_price: Decimal
    subtotal: Decimal
    note: str | None


@dataclass(frozen=True)
class NewOrder:
    table_number: str
    lines: list[OrderLine]
    total_amount: Decimal
    notes: str | None


def validate_new_order(payload: OrderCreate) -> NewOrder:
    """Validate a submitted order and compute its line subtotals and total.

    The stored total is the sum of line subtotals; a submitted total is only
    checked for being a finite, non-negative number.
    """
    table_number = str(payload.table_number if payload.table_number is not None else "").strip()
    if not table_number or not payload.items:
        raise ValidationError("Missing order information")

    submitted_total: Decimal | None = None
    if payload.total_amount is not None:
        submitted_total = to_decimal(payload.total_amount)
        if submitted_total is None or submitted_total < ZERO:
            raise ValidationError("Total amount must be a finite number")

    lines: list[OrderLine] = []
    for item in payload.items:
        unit_price = to_decimal(item.unit_price)
        if unit_price is None:
            raise ValidationError("Unit price must be a finite number")
        subtotal = unit_price * item.quantity
        if item.subtotal is not None and to_decimal(item.subtotal) != subtotal:
            logger.info("[ORDERS] Ignoring inconsistent submitted subtotal for menu_item_id=%s", item.menu_item_id)
        lines.append(
            OrderLine(
                menu_item_id=item.menu_item_id or None,
                quantity=item.quantity,
                unit_price=unit_price,
                subtotal=subtotal,
                note=item.note or None,
            )
        )

    total = sum((line.subtotal for line in lines), ZERO)
    if submitted_total is not None and submitted_total != total:
        logger.warning(
            "[ORDERS] Submitted total %s differs from item total %s for table %s; storing item total.",
            submitted_total,
            total,
            table_number,
        )

    return NewOrder(
        table_number=table_number,
        lines=lines,
        total_amount=total,
        notes=str(payload.notes) if payload.notes else None,
    )


def load_menu_index(db: Session, menu_item_ids: Iterable[str | None]) -> dict[str, MenuItem]:
    ids = {menu_id for menu_id in menu_item_ids if menu_id}
    if not ids:
        return {}
    return {item.id: item for item in db.scalars(select(MenuItem).where(MenuItem.id.in_(ids)))}


def build_order_dtos(db: Session, orders: Sequence[Order], fallback_label: str = DEFAULT_ITEM_LABEL) -> list[OrderDTO]:
    """Join lines and menu snapshots for a batch of orders."""
    if not orders:
        return []
    order_ids = [order.id for order in orders]
    items_by_order: dict[str, list[OrderItem]] = defaultdict(list)
    for item in db.scalars(select(OrderItem).where(OrderItem.order_id.in_(order_ids))):
        items_by_order[item.order_id].append(item)

    menu_index = load_menu_index(
        db,
        (item.menu_item_id for items in items_by_order.values() for item in items),
    )
    return [build_order_dto(order, items_by_order.get(order.id, []), menu_index, fallback_label) for order in orders]


def create_order(db: Session, new_order: NewOrder, fallback_label: str = DEFAULT_ITEM_LABEL) -> OrderDTO:
    """Persist header and lines in one transaction and return the DTO.

    A failure while writing lines rolls the header back with them.
    """
    order = Order(
        table_number=new_order.table_number,
        status=INITIAL_STATUS,
        notes=new_order.notes,
        order_time=utc_now(),
        total_amount=new_order.total_amount,
        completed_at=None,
    )
    try:
        db.add(order)
        db.flush()
        db.add_all(
            [
                OrderItem(
                    order_id=order.id,
                    menu_item_id=line.menu_item_id,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    subtotal=line.subtotal,
                    special_requests=line.note,
                    line_no=index,
                )
                for index, line in enumerate(new_order.lines)
            ]
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    db.refresh(order)
    publish_order_change("created", order_id=order.id, table_number=order.table_number, status=order.status)
    return build_order_dtos(db, [order], fallback_label)[0]


def list_orders(
    db: Session,
    *,
    table_number: str | None,
    privileged: bool,
    fallback_label: str = DEFAULT_ITEM_LABEL,
) -> list[OrderDTO]:
    """List orders newest first.

    Non-privileged callers only see one table and get nothing without one.
    """
    table_number = (table_number or "").strip() or None
    if not privileged and table_number is None:
        return []

    stmt = select(Order).order_by(Order.order_time.desc(), Order.created_at.desc())
    if table_number is not None:
        stmt = stmt.where(Order.table_number == table_number)
    orders = db.scalars(stmt).all()
    return build_order_dtos(db, orders, fallback_label)


def get_order(db: Session, order_id: str) -> Order:
    order = db.get(Order, order_id)
    if order is None:
        raise NotFoundError("Order not found")
    return order


def _status_snapshot(order: Order) -> dict[str, str | None]:
    return {"status": order.status, "completed_at": isoformat_or_none(order.completed_at)}


def update_order_status(
    db: Session,
    order_id: str,
    new_status: object,
    caller: Caller,
    fallback_label: str = DEFAULT_ITEM_LABEL,
) -> OrderDTO:
    """Authorize, validate and persist a status change; last write wins."""
    assert_allowed(caller.role, PRIVILEGED_ROLES)
    status = normalize_status(new_status)
    order = get_order(db, order_id)

    before = _status_snapshot(order)
    transition(order, status, caller.role)
    log_action(
        db,
        actor=caller,
        action_type="order.status",
        subject_id=order.id,
        before_snapshot=before,
        after_snapshot=_status_snapshot(order),
    )
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("[ORDERS] Status update failed for order_id=%s", order_id)
        raise InternalError("Could not update status") from exc

    db.refresh(order)
    publish_order_change("updated", order_id=order.id, table_number=order.table_number, status=order.status)
    return build_order_dtos(db, [order], fallback_label)[0]
