"""Order state machine tests."""

from datetime import datetime, timezone

import pytest

from qrorder.core.errors import AuthorizationError, ValidationError
from qrorder.core.roles import Role
from qrorder.models.order import Order
from qrorder.services.order_status import (
    ORDER_STATUSES,
    can_transition,
    next_status,
    normalize_status,
    transition,
)

NOW = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)


def _order(status: str = "pending", completed_at: datetime | None = None) -> Order:
    return Order(id="order-1", table_number="5", status=status, completed_at=completed_at)


@pytest.mark.parametrize("current", ORDER_STATUSES)
@pytest.mark.parametrize("target", ORDER_STATUSES)
def test_completed_at_tracks_completed_status(current: str, target: str) -> None:
    order = _order(current, NOW if current == "completed" else None)

    transition(order, target, Role.STAFF, now=NOW)

    assert order.status == target
    assert (order.status == "completed") == (order.completed_at is not None)


def test_identity_transition_to_completed_keeps_timestamp_set() -> None:
    order = _order("completed", None)

    transition(order, "completed", Role.ADMIN, now=NOW)

    assert order.completed_at == NOW


def test_unknown_status_leaves_order_unchanged() -> None:
    order = _order("preparing")

    with pytest.raises(ValidationError):
        transition(order, "bogus", Role.STAFF, now=NOW)

    assert order.status == "preparing"
    assert order.completed_at is None


def test_customer_cannot_transition() -> None:
    order = _order("pending")

    with pytest.raises(AuthorizationError):
        transition(order, "ready", Role.CUSTOMER, now=NOW)
    with pytest.raises(AuthorizationError):
        transition(order, "bogus", Role.ANONYMOUS, now=NOW)

    assert order.status == "pending"
    assert order.completed_at is None


def test_owner_can_transition() -> None:
    order = _order("ready")

    transition(order, "Completed", Role.OWNER, now=NOW)

    assert order.status == "completed"
    assert order.completed_at == NOW


def test_status_normalization() -> None:
    assert normalize_status("  READY ") == "ready"
    with pytest.raises(ValidationError):
        normalize_status(None)
    with pytest.raises(ValidationError):
        normalize_status("")


def test_lifecycle_graph() -> None:
    assert can_transition("pending", "preparing")
    assert can_transition("pending", "cancelled")
    assert can_transition("preparing", "cancelled")
    assert can_transition("ready", "completed")
    assert not can_transition("ready", "cancelled")
    assert not can_transition("completed", "pending")
    assert not can_transition("cancelled", "preparing")


def test_next_status_suggestions() -> None:
    assert next_status("pending") == "preparing"
    assert next_status("preparing") == "ready"
    assert next_status("ready") == "completed"
    assert next_status("completed") is None
    assert next_status("cancelled") is None
    assert next_status(None) is None
