from __future__ import annotations

from sqlalchemy import Column, Float, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from ..db.session import Base


class SavedBasket(Base):
    __tablename__ = "pos_baskets"

    id = Column(Integer, primary_key=True, index=True)
    basket_number = Column(Integer, nullable=False, index=True)
    customer_name = Column(Text, nullable=False, default="")
    user_email = Column(Text, nullable=True)
    user_name = Column(Text, nullable=True)
    status = Column(Text, nullable=False, default="pending")
    total = Column(Float, nullable=False, default=0.0)
    item_count = Column(Integer, nullable=False, default=0)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)

    items = relationship(
        "SavedBasketItem",
        order_by="SavedBasketItem.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class SavedBasketItem(Base):
    """One persisted basket line; ``position`` keeps the operator's ordering."""

    __tablename__ = "pos_basket_items"

    id = Column(Integer, primary_key=True, index=True)
    basket_id = Column(Integer, ForeignKey("pos_baskets.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    item_id = Column(Text, nullable=False)
    name = Column(Text, nullable=False)
    brand = Column(Text, nullable=True)
    category = Column(Text, nullable=True)
    serial_number = Column(Text, nullable=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Float, nullable=False, default=0.0)
    subtotal = Column(Float, nullable=False, default=0.0)
    available_stock = Column(Integer, nullable=False, default=0)
