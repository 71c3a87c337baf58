"""Order API schemas."""

from pydantic import Field

from qrorder.schemas.common import CamelModel


class OrderItemPayload(CamelModel):
    """Single order line as submitted by the customer."""

    menu_item_id: str | None = None
    name: str | None = None
    quantity: int = Field(default=1, ge=1)
    unit_price: float = Field(default=0, ge=0)
    subtotal: float | None = None
    note: str | None = None


class OrderCreate(CamelModel):
    """Payload for placing an order from a table."""

    table_number: str | int | None = None
    items: list[OrderItemPayload] = Field(default_factory=list)
    total_amount: float | str | None = None
    notes: str | None = None


class OrderStatusUpdate(CamelModel):
    status: str | None = None


class OrderItemDTO(CamelModel):
    """Order line enriched with menu display data."""

    menu_item_id: str | None
    name: str
    quantity: int
    unit_price: float
    subtotal: float
    note: str | None = None
    image_url: str | None = None


class OrderDTO(CamelModel):
    """Client-facing order representation."""

    id: str
    table_number: str
    status: str
    notes: str | None
    order_time: str | None
    completed_at: str | None
    total_amount: float
    items: list[str]
    raw_items: list[OrderItemDTO]
    next_status: str | None = None
