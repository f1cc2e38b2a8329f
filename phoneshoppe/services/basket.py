"""Point-of-sale basket building.

``BasketAggregator`` is the working list of (item, quantity) pairs an operator
assembles at the counter. It never talks to storage: stock bounds come from the
``CatalogItem`` snapshot taken when the screen opened, so a concurrent sale on
another device is not noticed until the catalog is refreshed.

``BasketSession`` wraps one aggregator per screen together with its catalog
snapshot and drives the save lifecycle::

    Empty -> Building -> Saving -> Empty     (saved, basket cleared)
                                -> Building  (store failed, lines kept)

Whether a save creates a new record or updates an existing one is tracked by
``BasketAggregator.editing_record_id`` (``None`` means a new basket).
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Iterable, Optional, Protocol, Sequence
from uuid import uuid4

from ..schemas.catalog import CatalogItem

logger = logging.getLogger(__name__)

__all__ = [
    "BasketError",
    "StockLimitReached",
    "InsufficientStock",
    "EmptyBasketError",
    "PersistenceError",
    "BasketLine",
    "BasketAggregator",
    "BasketState",
    "BasketMetadata",
    "BasketStore",
    "BasketSession",
]


class BasketError(ValueError):
    """Base class for recoverable basket warnings; state is left unchanged."""


class StockLimitReached(BasketError):
    def __init__(self, item: CatalogItem) -> None:
        super().__init__("Maximum stock reached")
        self.item = item


class InsufficientStock(BasketError):
    def __init__(self, available: int) -> None:
        super().__init__(f"Only {available} available in stock")
        self.available = available


class EmptyBasketError(BasketError):
    def __init__(self) -> None:
        super().__init__("Basket is empty")


class PersistenceError(RuntimeError):
    """The record store rejected or failed a save; the basket is untouched."""


@dataclass
class BasketLine:
    item: CatalogItem
    quantity: int = 1

    @property
    def available(self) -> int:
        return self.item.quantity

    @property
    def subtotal(self) -> Decimal:
        return self.item.unit_price * self.quantity


class BasketAggregator:
    def __init__(self) -> None:
        self._lines: list[BasketLine] = []
        self.editing_record_id: Optional[str] = None

    @property
    def lines(self) -> tuple[BasketLine, ...]:
        return tuple(self._lines)

    def __len__(self) -> int:
        return len(self._lines)

    def index_of(self, item_id: str) -> Optional[int]:
        for index, line in enumerate(self._lines):
            if line.item.id == item_id:
                return index
        return None

    def add_item(self, item: CatalogItem) -> BasketLine:
        """Add one unit of ``item``, merging with an existing line.

        Raises ``StockLimitReached`` when one more unit would exceed the
        snapshotted stock.
        """

        index = self.index_of(item.id)
        if index is None:
            if item.quantity < 1:
                raise StockLimitReached(item)
            line = BasketLine(item=item, quantity=1)
            self._lines.append(line)
            return line

        line = self._lines[index]
        # Bound by the snapshot just scanned, which may be fresher than the line.
        if line.quantity + 1 > item.quantity:
            raise StockLimitReached(item)
        line.item = item
        line.quantity += 1
        return line

    def set_quantity(self, index: int, quantity: int) -> Optional[BasketLine]:
        """Set a line's quantity exactly; zero or less removes the line."""

        line = self._lines[index]
        if quantity <= 0:
            self.remove_line(index)
            return None
        if quantity > line.available:
            raise InsufficientStock(line.available)
        line.quantity = quantity
        return line

    def remove_line(self, index: int) -> BasketLine:
        return self._lines.pop(index)

    def total(self) -> Decimal:
        return sum((line.subtotal for line in self._lines), Decimal("0"))

    def clear(self) -> None:
        self._lines.clear()
        self.editing_record_id = None

    def load(self, lines: Iterable[BasketLine], record_id: Optional[str]) -> None:
        """Replace the working lines with a saved basket's lines for editing."""

        self._lines = [BasketLine(item=line.item, quantity=line.quantity) for line in lines if line.quantity > 0]
        self.editing_record_id = record_id


class BasketState(str, Enum):
    EMPTY = "empty"
    BUILDING = "building"
    SAVING = "saving"


@dataclass
class BasketMetadata:
    customer_name: str = ""
    user_email: Optional[str] = None
    user_name: Optional[str] = None


class BasketStore(Protocol):
    def save_basket(self, lines: Sequence[BasketLine], metadata: BasketMetadata) -> str:
        ...

    def update_basket(self, record_id: str, lines: Sequence[BasketLine], metadata: BasketMetadata) -> bool:
        ...


class BasketSession:
    """One screen's basket: aggregator, catalog snapshot and save lifecycle."""

    def __init__(self, catalog: Iterable[CatalogItem] = (), *, session_id: Optional[str] = None) -> None:
        self.id = session_id or uuid4().hex
        self.basket = BasketAggregator()
        self.customer_name = ""
        self._catalog: list[CatalogItem] = list(catalog)
        self._saving = False
        # Requests run on worker threads; hold this while reading or mutating the basket.
        self.lock = threading.RLock()
        self.last_used = time.monotonic()

    @property
    def catalog(self) -> tuple[CatalogItem, ...]:
        return tuple(self._catalog)

    @property
    def state(self) -> BasketState:
        if self._saving:
            return BasketState.SAVING
        return BasketState.BUILDING if len(self.basket) else BasketState.EMPTY

    @property
    def editing_record_id(self) -> Optional[str]:
        return self.basket.editing_record_id

    def refresh_catalog(self, items: Iterable[CatalogItem]) -> None:
        self._catalog = list(items)

    def find_item(self, item_id: str) -> Optional[CatalogItem]:
        for item in self._catalog:
            if item.id == item_id:
                return item
        return None

    def load_record(self, record_id: str, lines: Iterable[BasketLine], customer_name: str = "") -> None:
        self.basket.load(lines, record_id)
        self.customer_name = customer_name

    def clear(self) -> None:
        self.basket.clear()
        self.customer_name = ""

    def save(self, store: BasketStore, metadata: Optional[BasketMetadata] = None) -> str:
        """Persist the basket through ``store`` and clear it on success.

        Returns the record id. Raises ``EmptyBasketError`` before touching the
        store when there is nothing to save, and ``PersistenceError`` when the
        store fails (the lines stay in place so the operator can retry).
        """

        if not len(self.basket):
            raise EmptyBasketError()

        metadata = metadata or BasketMetadata()
        if not metadata.customer_name:
            metadata.customer_name = self.customer_name
        lines = self.basket.lines
        record_id = self.basket.editing_record_id

        self._saving = True
        try:
            if record_id is None:
                record_id = store.save_basket(lines, metadata)
            elif not store.update_basket(record_id, lines, metadata):
                raise PersistenceError(f"Basket {record_id} could not be updated")
        except PersistenceError:
            logger.warning("basket.save_failed", extra={"extra_data": {"session_id": self.id, "record_id": record_id}})
            raise
        except Exception as exc:
            logger.exception("basket.save_failed", extra={"extra_data": {"session_id": self.id, "record_id": record_id}})
            raise PersistenceError(f"Error saving basket: {exc}") from exc
        finally:
            self._saving = False

        logger.info(
            "basket.saved",
            extra={
                "extra_data": {
                    "session_id": self.id,
                    "record_id": record_id,
                    "lines": len(lines),
                    "total": str(sum((line.subtotal for line in lines), Decimal("0"))),
                }
            },
        )
        self.clear()
        return record_id
