"""Inventory tables: catalog items and their stock movement history."""

from __future__ import annotations

from sqlalchemy import Column, Float, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from ..core.config import settings
from ..db.session import Base

IN_STOCK = "In Stock"
LOW_STOCK = "Low Stock"
OUT_OF_STOCK = "Out of Stock"


def stock_status(quantity: int | None, reorder_level: int | None = None) -> str:
    """Classify a stock level against the item's reorder threshold."""

    level = settings.DEFAULT_REORDER_LEVEL if reorder_level is None else reorder_level
    qty = quantity or 0
    if qty <= 0:
        return OUT_OF_STOCK
    if qty <= level:
        return LOW_STOCK
    return IN_STOCK


class InventoryItem(Base):
    __tablename__ = "inventory_items"

    id = Column(Integer, primary_key=True, index=True)
    category = Column(Text, nullable=False, default="other", index=True)
    name = Column(Text, nullable=False)
    brand = Column(Text, nullable=True)
    sku = Column(Text, nullable=True, index=True)
    serial_number = Column(Text, nullable=True, index=True)
    barcode = Column(Text, nullable=True, index=True)
    model_number = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    quantity = Column(Integer, nullable=False, default=0)
    unit_cost = Column(Float, nullable=True)
    selling_price = Column(Float, nullable=True)
    reorder_level = Column(Integer, nullable=True)
    supplier = Column(Text, nullable=True)
    location = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)

    @property
    def stock_status(self) -> str:
        return stock_status(self.quantity, self.reorder_level)


class StockMovement(Base):
    """A change in stock for a catalog item.

    Positive ``change`` values represent stock being added while negatives
    represent sales or write-offs.
    """

    __tablename__ = "stock_movements"

    id = Column(Integer, primary_key=True, index=True)
    item_id = Column(Integer, ForeignKey("inventory_items.id", ondelete="CASCADE"), nullable=False, index=True)
    change = Column(Integer, nullable=False)
    previous_quantity = Column(Integer, nullable=False)
    new_quantity = Column(Integer, nullable=False)
    reason = Column(Text, nullable=False, default="manual")
    note = Column(Text, nullable=True)
    created_at = Column(Text, nullable=False)

    item = relationship("InventoryItem", lazy="joined")

    @property
    def item_name(self) -> str | None:
        return self.item.name if self.item else None
