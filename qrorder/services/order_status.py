"""Order status transition helpers."""

from __future__ import annotations

import logging
from datetime import datetime

from qrorder.core.errors import AuthorizationError, ValidationError
from qrorder.core.roles import Role
from qrorder.models.order import Order
from qrorder.services.security_guards import is_staff_or_admin
from qrorder.utils.time import utc_now

logger = logging.getLogger(__name__)

ORDER_STATUSES: tuple[str, ...] = ("pending", "preparing", "ready", "completed", "cancelled")
INITIAL_STATUS: str = "pending"

ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    "pending": {"preparing", "cancelled"},
    "preparing": {"ready", "cancelled"},
    "ready": {"completed"},
    "completed": set(),
    "cancelled": set(),
}

NEXT_STATUS: dict[str, str] = {
    "pending": "preparing",
    "preparing": "ready",
    "ready": "completed",
}


def normalize_status(value: object) -> str:
    """Lowercase and validate a requested status."""
    status = str(value or "").strip().lower()
    if status not in ORDER_STATUSES:
        raise ValidationError("Invalid status")
    return status


def can_transition(current: str, new: str) -> bool:
    """Return whether order can move from current to new status along the lifecycle graph."""
    return new in ALLOWED_TRANSITIONS.get(current, set())


def next_status(current: str | None) -> str | None:
    """Suggested status for a single "advance" action."""
    return NEXT_STATUS.get(str(current or ""))


def set_status(order: Order, new_status: str, now: datetime) -> None:
    """Set status and derive ``completed_at`` from the target status alone."""
    order.status = new_status
    order.completed_at = now if new_status == "completed" else None


def transition(order: Order, new_status: object, role: Role, now: datetime | None = None) -> Order:
    """Apply a staff-requested status change to an order in memory.

    Nothing is mutated when the caller is not privileged or the status is
    unknown. Moves outside the lifecycle graph are applied (last write wins)
    but logged.
    """
    if not is_staff_or_admin(role):
        raise AuthorizationError("Forbidden")
    status = normalize_status(new_status)

    current = order.status
    if status != current and not can_transition(current, status):
        logger.warning("[ORDERS] Off-lifecycle status change order_id=%s %s -> %s by %s", order.id, current, status, role.value)

    set_status(order, status, now or utc_now())
    return order
