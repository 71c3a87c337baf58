"""Outbound notifications.

Delivery (push, SMS, realtime fan-out) belongs to external providers; this
module only records that something happened.
"""

from __future__ import annotations

import logging

from qrorder.utils.time import utc_now

logger = logging.getLogger(__name__)


def publish_order_change(event: str, *, order_id: str, table_number: str | None, status: str) -> None:
    """Announce an order change for dashboards subscribed to the change feed."""
    logger.info(
        "[REALTIME] orders %s order_id=%s table=%s status=%s",
        event,
        order_id,
        table_number,
        status,
    )


def call_staff(table_number: str, reason: str | None = None) -> dict[str, str]:
    """Record a customer's request for staff at a table."""
    payload = {
        "tableNumber": table_number,
        "reason": reason or "customer_request",
        "at": utc_now().isoformat(),
    }
    logger.info("[STAFF] Call staff requested: %s", payload)
    return payload
