"""Order DTO assembly tests."""

from datetime import datetime, timezone
from decimal import Decimal

from qrorder.models.menu import MenuItem
from qrorder.models.order import Order, OrderItem
from qrorder.services.order_builder import build_order_dto, to_decimal


def _order(**fields) -> Order:
    values = {
        "id": "order-1",
        "table_number": "5",
        "status": "pending",
        "total_amount": Decimal("100000"),
        "order_time": datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc),
        "completed_at": None,
        "created_at": datetime(2024, 5, 1, 8, 59, tzinfo=timezone.utc),
    }
    values.update(fields)
    return Order(**values)


def _item(**fields) -> OrderItem:
    values = {
        "id": "line-1",
        "order_id": "order-1",
        "menu_item_id": None,
        "quantity": 1,
        "unit_price": None,
        "subtotal": None,
        "special_requests": None,
        "line_no": 0,
    }
    values.update(fields)
    return OrderItem(**values)


def test_missing_subtotal_is_computed() -> None:
    line = _item(unit_price=Decimal("50000"), quantity=2)

    dto = build_order_dto(_order(), [line], {})

    assert dto.raw_items[0].subtotal == 100000
    assert dto.raw_items[0].unit_price == 50000
    assert dto.raw_items[0].name == "Item"


def test_legacy_line_uses_current_menu_price() -> None:
    menu = MenuItem(id="m1", name="Pho Bo", price=Decimal("45000"), image_url="https://img.example.com/pho.jpg")
    line = _item(menu_item_id="m1", quantity=3)

    dto = build_order_dto(_order(), [line], {"m1": menu})

    assert dto.raw_items[0].name == "Pho Bo"
    assert dto.raw_items[0].unit_price == 45000
    assert dto.raw_items[0].subtotal == 135000
    assert dto.raw_items[0].image_url == "https://img.example.com/pho.jpg"


def test_line_without_any_price_is_zero() -> None:
    dto = build_order_dto(_order(), [_item(menu_item_id="deleted", quantity=2)], {})

    assert dto.raw_items[0].unit_price == 0
    assert dto.raw_items[0].subtotal == 0


def test_inconsistent_stored_subtotal_is_recomputed() -> None:
    consistent = _item(id="a", unit_price=Decimal("10000"), quantity=2, subtotal=Decimal("20000"), line_no=0)
    inconsistent = _item(id="b", unit_price=Decimal("10000"), quantity=2, subtotal=Decimal("5"), line_no=1)

    dto = build_order_dto(_order(), [inconsistent, consistent], {})

    assert [item.subtotal for item in dto.raw_items] == [20000, 20000]


def test_stored_total_is_trusted() -> None:
    line = _item(unit_price=Decimal("1"), quantity=1)

    assert build_order_dto(_order(total_amount=Decimal("999")), [line], {}).total_amount == 999
    assert build_order_dto(_order(total_amount=None), [line], {}).total_amount == 0


def test_order_fields_and_fallback_label() -> None:
    order = _order(order_time=None, status="ready", notes="extra napkins")
    lines = [
        _item(id="second", menu_item_id="m2", line_no=1, unit_price=Decimal("2")),
        _item(id="first", menu_item_id="m1", line_no=0, unit_price=Decimal("1")),
    ]
    menu = {"m1": MenuItem(id="m1", name="Tea", price=Decimal("1"))}

    dto = build_order_dto(order, lines, menu, fallback_label="Unknown dish")

    assert dto.items == ["Tea", "Unknown dish"]
    assert dto.order_time == "2024-05-01T08:59:00+00:00"
    assert dto.completed_at is None
    assert dto.next_status == "completed"
    assert dto.notes == "extra napkins"


def test_amount_coercion() -> None:
    assert to_decimal("12.50") == Decimal("12.50")
    assert to_decimal(3) == Decimal("3")
    assert to_decimal("abc") is None
    assert to_decimal("NaN") is None
    assert to_decimal(float("inf")) is None
    assert to_decimal(True) is None
    assert to_decimal(None) is None
