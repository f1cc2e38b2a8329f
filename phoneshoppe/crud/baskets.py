"""Saved basket persistence.

``SqlBasketStore`` is the record store a ``BasketSession`` saves through. The
basket session decides *what* to send; this module decides how it is written.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Sequence

from sqlalchemy import desc, func, select
from sqlalchemy.orm import Session

from ..models.basket import SavedBasket, SavedBasketItem
from ..schemas.catalog import CatalogItem
from ..services.basket import BasketLine, BasketMetadata


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


def next_basket_number(db: Session) -> int:
    highest = db.execute(select(func.max(SavedBasket.basket_number))).scalar()
    return (highest or 0) + 1


def _item_rows(lines: Sequence[BasketLine]) -> list[SavedBasketItem]:
    return [
        SavedBasketItem(
            position=position,
            item_id=line.item.id,
            name=line.item.name,
            brand=line.item.brand,
            category=line.item.category,
            serial_number=line.item.sku or line.item.serial_number,
            quantity=line.quantity,
            unit_price=float(line.item.unit_price),
            subtotal=float(line.subtotal),
            available_stock=line.available,
        )
        for position, line in enumerate(lines)
    ]


def _total(lines: Sequence[BasketLine]) -> float:
    return float(sum((line.subtotal for line in lines), Decimal("0")))


def list_baskets(db: Session, *, user_email: str | None = None, limit: int = 100, offset: int = 0) -> list[SavedBasket]:
    stmt = select(SavedBasket).order_by(desc(SavedBasket.basket_number)).limit(limit).offset(offset)
    if user_email:
        stmt = stmt.where(SavedBasket.user_email == user_email)
    return list(db.execute(stmt).scalars().all())


def get_basket(db: Session, basket_id: int) -> SavedBasket | None:
    return db.get(SavedBasket, basket_id)


def delete_basket(db: Session, basket: SavedBasket) -> None:
    db.delete(basket)
    db.commit()


def basket_lines(basket: SavedBasket) -> list[BasketLine]:
    """Rebuild editable basket lines from a saved record."""

    return [
        BasketLine(
            item=CatalogItem(
                id=row.item_id,
                name=row.name,
                brand=row.brand,
                category=row.category or "other",
                sku=row.serial_number,
                unit_price=row.unit_price,
                quantity=row.available_stock,
            ),
            quantity=row.quantity,
        )
        for row in basket.items
    ]


class SqlBasketStore:
    """Persist basket sessions to the ``pos_baskets`` tables."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def save_basket(self, lines: Sequence[BasketLine], metadata: BasketMetadata) -> str:
        timestamp = _now()
        basket = SavedBasket(
            basket_number=next_basket_number(self.db),
            customer_name=metadata.customer_name.strip(),
            user_email=metadata.user_email,
            user_name=metadata.user_name,
            status="pending",
            total=_total(lines),
            item_count=len(lines),
            created_at=timestamp,
            updated_at=timestamp,
        )
        basket.items = _item_rows(lines)
        self.db.add(basket)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(basket)
        return str(basket.id)

    def update_basket(self, record_id: str, lines: Sequence[BasketLine], metadata: BasketMetadata) -> bool:
        basket = get_basket(self.db, int(record_id))
        if basket is None:
            return False
        basket.items = _item_rows(lines)
        basket.total = _total(lines)
        basket.item_count = len(lines)
        basket.customer_name = metadata.customer_name.strip()
        basket.updated_at = _now()
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return True
