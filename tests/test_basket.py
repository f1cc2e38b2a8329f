import os
import sys
from decimal import Decimal
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from phoneshoppe.schemas.catalog import CatalogItem
from phoneshoppe.services.basket import (
    BasketAggregator,
    BasketLine,
    BasketMetadata,
    BasketSession,
    BasketState,
    EmptyBasketError,
    InsufficientStock,
    PersistenceError,
    StockLimitReached,
)


def _item(item_id="1", price="500", quantity=3, **extra):
    return CatalogItem(id=item_id, name=f"Item {item_id}", unit_price=price, quantity=quantity, **extra)


class RecordingStore:
    def __init__(self, *, fail=False, update_result=True):
        self.fail = fail
        self.update_result = update_result
        self.saved = []
        self.updated = []

    def save_basket(self, lines, metadata):
        if self.fail:
            raise ConnectionError("store offline")
        self.saved.append(([(line.item.id, line.quantity) for line in lines], metadata))
        return f"rec-{len(self.saved)}"

    def update_basket(self, record_id, lines, metadata):
        if self.fail:
            raise ConnectionError("store offline")
        self.updated.append((record_id, [(line.item.id, line.quantity) for line in lines], metadata))
        return self.update_result


def test_add_item_twice_merges_into_one_line():
    item = _item(price="19.99", quantity=2)
    basket = BasketAggregator()

    basket.add_item(item)
    basket.add_item(item)

    assert len(basket) == 1
    assert basket.lines[0].quantity == 2
    assert basket.total() == 2 * item.unit_price == Decimal("39.98")


def test_add_item_stops_at_available_stock():
    item = _item(quantity=3)
    basket = BasketAggregator()
    for _ in range(3):
        basket.add_item(item)

    with pytest.raises(StockLimitReached) as excinfo:
        basket.add_item(item)

    assert str(excinfo.value) == "Maximum stock reached"
    assert basket.lines[0].quantity == 3
    assert basket.total() == Decimal("1500")


def test_add_item_without_stock_is_rejected():
    basket = BasketAggregator()
    with pytest.raises(StockLimitReached):
        basket.add_item(_item(quantity=0))
    assert len(basket) == 0


def test_set_quantity_zero_removes_line():
    basket = BasketAggregator()
    basket.add_item(_item("1"))
    basket.add_item(_item("2"))

    assert basket.set_quantity(0, 0) is None
    assert len(basket) == 1
    assert basket.lines[0].item.id == "2"


def test_set_quantity_above_stock_leaves_line_unchanged():
    basket = BasketAggregator()
    basket.add_item(_item(quantity=3))

    with pytest.raises(InsufficientStock) as excinfo:
        basket.set_quantity(0, 4)

    assert excinfo.value.available == 3
    assert str(excinfo.value) == "Only 3 available in stock"
    assert basket.lines[0].quantity == 1

    basket.set_quantity(0, 3)
    assert basket.lines[0].quantity == 3


def test_remove_line_and_total_over_many_lines():
    basket = BasketAggregator()
    for index in range(10):
        basket.add_item(_item(str(index), price="0.10", quantity=1))

    assert basket.total() == Decimal("1.00")
    basket.remove_line(0)
    assert basket.total() == Decimal("0.90")


def test_clear_resets_lines_and_editing_record():
    basket = BasketAggregator()
    basket.load([BasketLine(_item(), 2)], "rec-7")
    assert basket.editing_record_id == "rec-7"

    basket.clear()

    assert len(basket) == 0
    assert basket.total() == 0
    assert basket.editing_record_id is None


def test_load_drops_empty_lines():
    basket = BasketAggregator()
    basket.load([BasketLine(_item("1"), 2), BasketLine(_item("2"), 0)], "rec-1")
    assert [line.item.id for line in basket.lines] == ["1"]


def test_session_state_follows_lines():
    session = BasketSession([_item()])
    assert session.state is BasketState.EMPTY

    session.basket.add_item(session.find_item("1"))
    assert session.state is BasketState.BUILDING

    session.clear()
    assert session.state is BasketState.EMPTY


def test_save_empty_basket_never_reaches_store():
    store = RecordingStore()
    session = BasketSession([_item()])

    with pytest.raises(EmptyBasketError):
        session.save(store)

    assert store.saved == []


def test_save_new_basket_clears_session():
    store = RecordingStore()
    session = BasketSession([_item()])
    session.customer_name = "Maria"
    session.basket.add_item(session.find_item("1"))

    record_id = session.save(store)

    assert record_id == "rec-1"
    assert store.saved[0][0] == [("1", 1)]
    assert store.saved[0][1].customer_name == "Maria"
    assert session.state is BasketState.EMPTY
    assert session.editing_record_id is None


def test_save_loaded_basket_updates_record():
    store = RecordingStore()
    session = BasketSession([_item()])
    session.load_record("rec-9", [BasketLine(_item(), 2)], "Jose")

    record_id = session.save(store, BasketMetadata(user_email="clerk@example.com"))

    assert record_id == "rec-9"
    assert store.saved == []
    assert store.updated[0][0] == "rec-9"
    assert store.updated[0][2].customer_name == "Jose"
    assert len(session.basket) == 0


def test_failed_save_keeps_lines_for_retry():
    store = RecordingStore(fail=True)
    session = BasketSession([_item()])
    session.basket.add_item(session.find_item("1"))

    with pytest.raises(PersistenceError):
        session.save(store)

    assert session.state is BasketState.BUILDING
    assert session.basket.lines[0].quantity == 1

    store.fail = False
    assert session.save(store) == "rec-1"


def test_rejected_update_raises_and_keeps_editing_record():
    store = RecordingStore(update_result=False)
    session = BasketSession([_item()])
    session.load_record("rec-3", [BasketLine(_item(), 1)])

    with pytest.raises(PersistenceError):
        session.save(store)

    assert session.editing_record_id == "rec-3"
    assert len(session.basket) == 1


def test_refresh_catalog_replaces_snapshot():
    session = BasketSession([_item("1")])
    session.refresh_catalog([_item("2"), _item("3")])
    assert session.find_item("1") is None
    assert len(session.catalog) == 2


def test_add_item_uses_refreshed_stock_when_it_drops():
    session = BasketSession([_item(quantity=3)])
    session.basket.add_item(session.find_item("1"))
    session.basket.add_item(session.find_item("1"))

    session.refresh_catalog([_item(quantity=1)])
    with pytest.raises(StockLimitReached):
        session.basket.add_item(session.find_item("1"))

    assert session.basket.lines[0].quantity == 2


def test_add_item_uses_refreshed_stock_when_it_rises():
    session = BasketSession([_item(quantity=1)])
    session.basket.add_item(session.find_item("1"))

    session.refresh_catalog([_item(quantity=5)])
    session.basket.add_item(session.find_item("1"))

    line = session.basket.lines[0]
    assert line.quantity == 2
    assert line.available == 5
    # The line now carries the new bound for quantity edits too.
    session.basket.set_quantity(0, 5)
    assert line.quantity == 5
