import os
import sys
from decimal import Decimal
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from phoneshoppe.db.session import Base
from phoneshoppe.crud.catalog import (
    DuplicateCodeError,
    adjust_stock,
    create_item,
    delete_item,
    fetch_all_items,
    generate_next_sku,
    list_items,
    list_movements,
    update_item,
)
from phoneshoppe.models.catalog import IN_STOCK, LOW_STOCK, OUT_OF_STOCK, stock_status

# Ensure models are imported so metadata is populated
from phoneshoppe.models import catalog as catalog_model  # noqa: F401


@pytest.fixture()
def db_session():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False})
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


def test_create_item_cleans_text_and_defaults(db_session):
    item = create_item(db_session, {"name": "  Cherry Aqua  ", "sku": " ", "category": "", "selling_price": 499.5})

    assert item.name == "Cherry Aqua"
    assert item.sku is None
    assert item.category == "other"
    assert item.quantity == 0
    assert item.stock_status == OUT_OF_STOCK


def test_create_item_requires_name(db_session):
    with pytest.raises(ValueError):
        create_item(db_session, {"name": "   "})


def test_duplicate_sku_and_barcode_rejected(db_session):
    first = create_item(db_session, {"name": "Charger", "sku": "CH-1", "barcode": "480001"})

    with pytest.raises(DuplicateCodeError):
        create_item(db_session, {"name": "Other charger", "sku": "CH-1"})
    with pytest.raises(DuplicateCodeError):
        create_item(db_session, {"name": "Cable", "barcode": "480001"})

    # Re-saving an item's own codes is not a conflict.
    updated = update_item(db_session, first, {"sku": "CH-1", "name": "Fast charger"})
    assert updated.name == "Fast charger"


def test_search_matches_codes_and_brand(db_session):
    create_item(db_session, {"name": "Galaxy A15", "brand": "Samsung", "serial_number": "SM-A155"})
    create_item(db_session, {"name": "Redmi 13", "brand": "Xiaomi", "barcode": "6941812"})

    assert [item.name for item in list_items(db_session, search="samsung")] == ["Galaxy A15"]
    assert [item.name for item in list_items(db_session, search="69418")] == ["Redmi 13"]
    assert len(list_items(db_session)) == 2
    assert list_items(db_session, category="accessory") == []


def test_stock_adjustments_record_movements(db_session):
    item = create_item(db_session, {"name": "Sim card", "quantity": 2})

    added = adjust_stock(db_session, item, action="add", quantity=5, reason="delivery")
    assert (added.previous_quantity, added.new_quantity, added.change) == (2, 7, 5)
    assert added.reason == "delivery"

    removed = adjust_stock(db_session, item, action="remove", quantity=3)
    assert removed.new_quantity == 4
    assert removed.reason == "remove"

    set_movement = adjust_stock(db_session, item, action="set", quantity=10, note="recount")
    assert set_movement.change == 6
    assert item.quantity == 10
    assert item.stock_status == IN_STOCK

    history = list_movements(db_session, item_id=item.id)
    assert [movement.change for movement in history] == [6, -3, 5]
    assert history[0].item_name == "Sim card"


def test_stock_adjustment_rejections(db_session):
    item = create_item(db_session, {"name": "Earphones", "quantity": 1})

    with pytest.raises(ValueError, match="Only 1 available"):
        adjust_stock(db_session, item, action="remove", quantity=2)
    with pytest.raises(ValueError):
        adjust_stock(db_session, item, action="set", quantity=1)
    assert item.quantity == 1
    assert list_movements(db_session, item_id=item.id) == []


def test_update_quantity_records_edit_movement(db_session):
    item = create_item(db_session, {"name": "Powerbank", "quantity": 4})

    update_item(db_session, item, {"quantity": 1})

    movement = list_movements(db_session, item_id=item.id)[0]
    assert movement.reason == "edit"
    assert movement.change == -3
    assert item.stock_status == LOW_STOCK


def test_delete_item_removes_history(db_session):
    item = create_item(db_session, {"name": "Case", "quantity": 1})
    adjust_stock(db_session, item, action="add", quantity=1)

    delete_item(db_session, item)

    assert list_items(db_session) == []
    assert list_movements(db_session) == []


def test_generate_next_sku(db_session):
    assert generate_next_sku(db_session) == "9000001"

    create_item(db_session, {"name": "A", "sku": "9000005"})
    create_item(db_session, {"name": "B", "serial_number": "9000012"})
    create_item(db_session, {"name": "C", "sku": "ABC-99999999"})

    assert generate_next_sku(db_session) == "9000013"


def test_fetch_all_items_builds_snapshots(db_session):
    create_item(db_session, {"name": "Cherry Aqua", "serial_number": "774053", "selling_price": 19.99, "quantity": 3})

    (snapshot,) = fetch_all_items(db_session)

    assert snapshot.unit_price == Decimal("19.99")
    assert snapshot.quantity == 3
    assert snapshot.match_fields() == ("774053", None, None, "Cherry Aqua")


def test_stock_status_thresholds():
    assert stock_status(0) == OUT_OF_STOCK
    assert stock_status(5) == LOW_STOCK
    assert stock_status(6) == IN_STOCK
    assert stock_status(6, reorder_level=10) == LOW_STOCK


def test_generate_next_sku_skips_digit_symbols(db_session):
    create_item(db_session, {"name": "Odd label", "sku": "²"})
    create_item(db_session, {"name": "Real", "sku": "9000003"})

    assert generate_next_sku(db_session) == "9000004"
