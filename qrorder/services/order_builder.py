"""Assemble client-facing order representations from stored rows."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from decimal import Decimal, InvalidOperation

from qrorder.models.menu import MenuItem
from qrorder.models.order import Order, OrderItem
from qrorder.schemas.order import OrderDTO, OrderItemDTO
from qrorder.services.order_status import next_status
from qrorder.utils.time import isoformat_or_none

DEFAULT_ITEM_LABEL: str = "Item"
ZERO: Decimal = Decimal("0")


def to_decimal(value: object) -> Decimal | None:
    """Coerce a stored or submitted amount to a finite Decimal, or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite():
        return None
    return amount


def _as_number(amount: Decimal) -> float:
    return float(amount)


def build_item_dto(item: OrderItem, menu_item: MenuItem | None, fallback_label: str = DEFAULT_ITEM_LABEL) -> OrderItemDTO:
    quantity = int(item.quantity or 1)

    stored_unit = to_decimal(item.unit_price)
    unit_price = stored_unit
    if unit_price is None and menu_item is not None:
        # Rows written before unit prices were captured fall back to the live price.
        unit_price = to_decimal(menu_item.price)
    if unit_price is None:
        unit_price = ZERO

    computed = unit_price * quantity
    stored_subtotal = to_decimal(item.subtotal)
    if stored_subtotal is not None and (stored_unit is None or stored_subtotal == computed):
        subtotal = stored_subtotal
    else:
        subtotal = computed

    return OrderItemDTO(
        menu_item_id=item.menu_item_id,
        name=menu_item.name if menu_item is not None else fallback_label,
        quantity=quantity,
        unit_price=_as_number(unit_price),
        subtotal=_as_number(subtotal),
        note=item.special_requests,
        image_url=menu_item.image_url if menu_item is not None else None,
    )


def build_order_dto(
    order: Order,
    items: Sequence[OrderItem],
    menu_index: Mapping[str, MenuItem],
    fallback_label: str = DEFAULT_ITEM_LABEL,
) -> OrderDTO:
    """Build the order DTO from its header, lines and a menu snapshot index.

    The stored total is trusted for existing orders and is never re-summed.
    """
    raw_items = [
        build_item_dto(
            item,
            menu_index.get(item.menu_item_id) if item.menu_item_id else None,
            fallback_label,
        )
        for item in sorted(items, key=lambda row: row.line_no or 0)
    ]
    total = to_decimal(order.total_amount) or ZERO

    return OrderDTO(
        id=order.id,
        table_number=str(order.table_number or ""),
        status=order.status,
        notes=order.notes,
        order_time=isoformat_or_none(order.order_time or order.created_at),
        completed_at=isoformat_or_none(order.completed_at),
        total_amount=_as_number(total),
        items=[item.name for item in raw_items],
        raw_items=raw_items,
        next_status=next_status(order.status),
    )
