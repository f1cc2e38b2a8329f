"""Catalog CRUD helpers: items, stock adjustments and SKU generation."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import desc, func, or_, select
from sqlalchemy.orm import Session

from ..core.config import settings
from ..models.catalog import InventoryItem, StockMovement
from ..schemas.catalog import CatalogItem

_TEXT_FIELDS = (
    "category",
    "name",
    "brand",
    "sku",
    "serial_number",
    "barcode",
    "model_number",
    "description",
    "supplier",
    "location",
    "notes",
)
# Codes that identify a single product; two items may not share one.
_UNIQUE_CODES = ("sku", "barcode")


class DuplicateCodeError(ValueError):
    """Another item already carries the SKU or barcode."""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


def _clean_payload(payload: dict) -> dict:
    data = {}
    for key, value in payload.items():
        if key in _TEXT_FIELDS and isinstance(value, str):
            value = value.strip() or None
        data[key] = value
    if "category" in data and not data["category"]:
        data["category"] = "other"
    return data


def to_catalog_item(row: InventoryItem) -> CatalogItem:
    return CatalogItem(
        id=row.id,
        name=row.name,
        brand=row.brand,
        category=row.category,
        serial_number=row.serial_number,
        sku=row.sku,
        barcode=row.barcode,
        model_number=row.model_number,
        unit_price=row.selling_price,
        quantity=row.quantity,
    )


def list_items(
    db: Session,
    *,
    search: str | None = None,
    category: str | None = None,
    limit: int | None = None,
    offset: int = 0,
) -> list[InventoryItem]:
    """Return items ordered by name, optionally filtered by a search string."""

    stmt = select(InventoryItem).order_by(func.lower(InventoryItem.name), InventoryItem.id)
    if category:
        stmt = stmt.where(InventoryItem.category == category)
    query = (search or "").strip().lower()
    if query:
        pattern = f"%{query}%"
        stmt = stmt.where(
            or_(
                *(
                    func.lower(func.coalesce(column, "")).like(pattern)
                    for column in (
                        InventoryItem.name,
                        InventoryItem.sku,
                        InventoryItem.serial_number,
                        InventoryItem.barcode,
                        InventoryItem.brand,
                        InventoryItem.model_number,
                    )
                )
            )
        )
    if limit is not None:
        stmt = stmt.limit(limit)
    if offset:
        stmt = stmt.offset(offset)
    return list(db.execute(stmt).scalars().all())


def fetch_all_items(db: Session) -> list[CatalogItem]:
    """Load the whole catalog as read-only snapshots for a basket session."""

    return [to_catalog_item(row) for row in list_items(db)]


def get_item(db: Session, item_id: int) -> InventoryItem | None:
    return db.get(InventoryItem, item_id)


def find_item_by_code(db: Session, field: str, value: str, *, exclude_id: int | None = None) -> InventoryItem | None:
    column = getattr(InventoryItem, field)
    stmt = select(InventoryItem).where(column == value)
    if exclude_id is not None:
        stmt = stmt.where(InventoryItem.id != exclude_id)
    return db.execute(stmt).scalars().first()


def _ensure_unique_codes(db: Session, data: dict, exclude_id: int | None = None) -> None:
    for field in _UNIQUE_CODES:
        value = data.get(field)
        if value and find_item_by_code(db, field, value, exclude_id=exclude_id):
            raise DuplicateCodeError(f"{field} '{value}' is already assigned to another item")


def create_item(db: Session, payload: dict) -> InventoryItem:
    data = _clean_payload(payload)
    if not data.get("name"):
        raise ValueError("name is required for inventory items")
    _ensure_unique_codes(db, data)
    timestamp = _now()
    data.setdefault("created_at", timestamp)
    data.setdefault("updated_at", timestamp)
    data.setdefault("quantity", 0)

    item = InventoryItem(**data)
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def update_item(db: Session, item: InventoryItem, payload: dict) -> InventoryItem:
    """Update an item in place. Unknown keys are ignored.

    Quantity changes made here are recorded as an ``edit`` stock movement so the
    history stays complete.
    """

    data = _clean_payload(payload)
    if "name" in data and not data["name"]:
        raise ValueError("name is required for inventory items")
    _ensure_unique_codes(db, data, exclude_id=item.id)

    new_quantity = data.pop("quantity", None)
    for key, value in data.items():
        if hasattr(item, key) and key not in ("id", "created_at"):
            setattr(item, key, value)
    item.updated_at = _now()

    if new_quantity is not None and new_quantity != item.quantity:
        _apply_movement(db, item, new_quantity - item.quantity, reason="edit")
    db.commit()
    db.refresh(item)
    return item


def delete_item(db: Session, item: InventoryItem) -> None:
    for movement in list_movements(db, item_id=item.id, limit=None):
        db.delete(movement)
    db.delete(item)
    db.commit()


def _apply_movement(db: Session, item: InventoryItem, change: int, *, reason: str, note: str | None = None) -> StockMovement:
    previous = item.quantity or 0
    movement = StockMovement(
        item_id=item.id,
        change=change,
        previous_quantity=previous,
        new_quantity=previous + change,
        reason=reason,
        note=note,
        created_at=_now(),
    )
    item.quantity = previous + change
    item.updated_at = movement.created_at
    db.add(movement)
    return movement


def adjust_stock(
    db: Session,
    item: InventoryItem,
    *,
    action: str,
    quantity: int,
    reason: str | None = None,
    note: str | None = None,
) -> StockMovement:
    """Add, remove or set stock for ``item`` and record the movement."""

    if quantity < 0:
        raise ValueError("quantity must not be negative")
    current = item.quantity or 0
    if action == "add":
        change = quantity
    elif action == "remove":
        if quantity > current:
            raise ValueError(f"Only {current} available in stock")
        change = -quantity
    elif action == "set":
        change = quantity - current
    else:
        raise ValueError(f"unknown stock action: {action}")
    if not change:
        raise ValueError("change must be non-zero")

    movement = _apply_movement(db, item, change, reason=(reason or action).strip() or action, note=note)
    db.commit()
    db.refresh(movement)
    return movement


def list_movements(
    db: Session,
    *,
    item_id: int | None = None,
    limit: int | None = 50,
    offset: int = 0,
) -> list[StockMovement]:
    """Fetch stock history ordered by recency."""

    stmt = select(StockMovement).order_by(desc(StockMovement.created_at), desc(StockMovement.id))
    if item_id is not None:
        stmt = stmt.where(StockMovement.item_id == item_id)
    if limit is not None:
        stmt = stmt.limit(limit)
    if offset:
        stmt = stmt.offset(offset)
    return list(db.execute(stmt).unique().scalars().all())


def generate_next_sku(db: Session) -> str:
    """Return the next free SKU in the auto-generated series."""

    start = settings.SKU_SERIES_START
    highest = start
    for sku, serial in db.execute(select(InventoryItem.sku, InventoryItem.serial_number)).all():
        code = (sku or serial or "").strip()
        if code.isdecimal() and int(code) > highest:
            highest = int(code)
    return str(highest + 1)
