"""Explicit maintenance operations for the order and table stores."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from sqlalchemy import exists, select
from sqlalchemy.orm import Session

from qrorder.models.order import Order, OrderItem
from qrorder.models.table import DiningTable
from qrorder.services.audit_service import log_action
from qrorder.services.order_status import set_status
from qrorder.services.role_resolver import Caller
from qrorder.services.table_allocator import normalize_tables
from qrorder.utils.time import utc_now

logger = logging.getLogger(__name__)

TERMINAL_STATUSES: tuple[str, ...] = ("completed", "cancelled")


def find_orphaned_orders(db: Session, created_before: datetime) -> list[Order]:
    """Return non-terminal orders without any line that are older than the cut-off."""
    has_items = exists().where(OrderItem.order_id == Order.id)
    return list(
        db.scalars(
            select(Order)
            .where(~has_items, Order.created_at < created_before, Order.status.not_in(TERMINAL_STATUSES))
            .order_by(Order.created_at.asc())
        )
    )


def reconcile_orphaned_orders(db: Session, caller: Caller, grace_seconds: int) -> list[str]:
    """Cancel orders left without lines by interrupted writes; return their ids."""
    now = utc_now()
    orphans = find_orphaned_orders(db, now - timedelta(seconds=grace_seconds))
    for order in orphans:
        before = {"status": order.status}
        set_status(order, "cancelled", now)
        log_action(
            db,
            actor=caller,
            action_type="order.reconcile",
            subject_id=order.id,
            before_snapshot=before,
            after_snapshot={"status": order.status},
        )
    db.commit()
    if orphans:
        logger.warning("[ORDERS] Cancelled %s orphaned orders", len(orphans))
    return [order.id for order in orphans]


def run_table_normalization(db: Session, caller: Caller) -> tuple[list[DiningTable], bool]:
    tables, changed = normalize_tables(db)
    if changed:
        log_action(db, actor=caller, action_type="tables.normalize", after_snapshot={"count": len(tables)})
        db.commit()
    return tables, changed
