"""Menu item API schemas."""

from pydantic import Field

from qrorder.schemas.common import CamelModel


class MenuItemCreate(CamelModel):
    """Payload for creating (or upserting by name) a menu item."""

    name: str = ""
    description: str | None = None
    price: float = Field(default=0, ge=0)
    available: bool = True
    category: str | None = None
    sort_order: int = 0
    image_url: str | None = None


class MenuItemUpdate(CamelModel):
    """Partial update; only provided fields change."""

    name: str | None = None
    description: str | None = None
    price: float | None = Field(default=None, ge=0)
    available: bool | None = None
    category: str | None = None
    sort_order: int | None = None
    image_url: str | None = None


class MenuItemDTO(CamelModel):
    id: str
    name: str
    description: str
    price: float
    available: bool
    category: str | None
    sort_order: int
    image_url: str | None
    created_at: str | None
    updated_at: str | None
