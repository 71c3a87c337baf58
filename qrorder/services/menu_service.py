"""Menu item service helpers."""

from decimal import Decimal

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from qrorder.core.errors import NotFoundError, ValidationError, is_unique_violation
from qrorder.models.menu import MenuItem
from qrorder.schemas.menu import MenuItemCreate, MenuItemDTO, MenuItemUpdate
from qrorder.utils.time import isoformat_or_none


def menu_item_to_dto(item: MenuItem) -> MenuItemDTO:
    return MenuItemDTO(
        id=item.id,
        name=item.name,
        description=item.description or "",
        price=float(item.price if item.price is not None else 0),
        available=bool(item.available),
        category=item.category,
        sort_order=item.sort_order or 0,
        image_url=item.image_url,
        created_at=isoformat_or_none(item.created_at),
        updated_at=isoformat_or_none(item.updated_at),
    )


def list_menu_items(db: Session, *, only_available: bool, search: str | None = None) -> list[MenuItem]:
    """Return menu items ordered for display, optionally only the orderable ones."""
    query = db.query(MenuItem)
    if only_available:
        query = query.filter(MenuItem.available.is_(True))
    if search:
        query = query.filter(MenuItem.name.ilike(f"%{search.strip()}%"))
    return query.order_by(MenuItem.sort_order.asc(), MenuItem.name.asc()).all()


def get_menu_item(db: Session, item_id: str) -> MenuItem:
    item = db.get(MenuItem, item_id)
    if item is None:
        raise NotFoundError("Menu item not found")
    return item


def upsert_menu_item(db: Session, payload: MenuItemCreate) -> tuple[MenuItem, bool]:
    """Create a menu item, or update the existing one with the same name.

    Returns the item and whether it was newly created.
    """
    name = payload.name.strip()
    if not name:
        raise ValidationError("name is required")

    item = db.query(MenuItem).filter(MenuItem.name == name).first()
    created = item is None
    if item is None:
        item = MenuItem(name=name)
        db.add(item)

    item.description = payload.description
    item.price = Decimal(str(payload.price))
    item.available = payload.available
    item.category = payload.category
    item.sort_order = payload.sort_order
    item.image_url = payload.image_url
    db.commit()
    db.refresh(item)
    return item, created


def update_menu_item(db: Session, item_id: str, payload: MenuItemUpdate) -> MenuItem:
    """Apply only the fields present in the payload."""
    item = get_menu_item(db, item_id)
    changes = payload.model_dump(exclude_unset=True)

    if "name" in changes:
        name = (changes["name"] or "").strip()
        if not name:
            raise ValidationError("name is required")
        item.name = name
    if "description" in changes:
        item.description = changes["description"]
    if changes.get("price") is not None:
        item.price = Decimal(str(changes["price"]))
    if changes.get("available") is not None:
        item.available = bool(changes["available"])
    if "category" in changes:
        item.category = changes["category"]
    if changes.get("sort_order") is not None:
        item.sort_order = int(changes["sort_order"])
    if "image_url" in changes:
        item.image_url = changes["image_url"]

    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if is_unique_violation(exc):
            raise ValidationError("Menu item name already exists") from exc
        raise
    db.refresh(item)
    return item


def delete_menu_item(db: Session, item_id: str) -> None:
    item = get_menu_item(db, item_id)
    db.delete(item)
    db.commit()
