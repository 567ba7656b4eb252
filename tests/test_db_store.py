"""Tests for SQLiteInventoryStore CRUD operations."""

import sqlite3
from datetime import date, datetime
from unittest.mock import patch

import pytest

from pantryscan.db.store import SQLiteInventoryStore
from pantryscan.inventory import InventoryModel
from pantryscan.models import Item, Location, Lot


@pytest.fixture
def store(tmp_path):
    """Create a temporary SQLiteInventoryStore."""
    s = SQLiteInventoryStore(db_path=tmp_path / "test.db")
    yield s
    s.close()


@pytest.fixture
def sample_item():
    return Item(
        name="Tomato Soup",
        brand="Acme",
        size="10.75 oz",
        barcode="012345678905",
        location=Location.PANTRY,
        quantity=3,
        par_level=2,
        created_at=datetime(2026, 1, 10, 9, 0),
        updated_at=datetime(2026, 1, 10, 9, 0),
    )


def test_save_and_load_item(store, sample_item):
    assert store.save_item(sample_item) is True

    [loaded] = store.load_items()
    assert loaded.id == sample_item.id
    assert loaded.name == "Tomato Soup"
    assert loaded.brand == "Acme"
    assert loaded.barcode == "012345678905"
    assert loaded.location is Location.PANTRY
    assert loaded.quantity == 3
    assert loaded.par_level == 2
    assert loaded.updated_at == datetime(2026, 1, 10, 9, 0)
    assert loaded.lots == []


def test_load_empty(store):
    assert store.load_items() == []


def test_save_item_updates_existing(store, sample_item):
    store.save_item(sample_item)
    sample_item.name = "Cream of Tomato"
    sample_item.quantity = 0
    store.save_item(sample_item)

    [loaded] = store.load_items()
    assert loaded.name == "Cream of Tomato"
    assert loaded.quantity == 0


def test_lots_round_trip_in_insertion_order(store, sample_item):
    store.save_item(sample_item)
    first = Lot(expiration_date=date(2026, 5, 1), item_id=sample_item.id)
    second = Lot(
        expiration_date=None,
        opened_at=date(2026, 1, 12),
        notes="opened",
        item_id=sample_item.id,
    )
    assert store.save_lot(first) is True
    assert store.save_lot(second) is True

    [loaded] = store.load_items()
    assert [lot.id for lot in loaded.lots] == [first.id, second.id]
    assert loaded.lots[0].expiration_date == date(2026, 5, 1)
    assert loaded.lots[1].expiration_date is None
    assert loaded.lots[1].opened_at == date(2026, 1, 12)
    assert loaded.lots[1].notes == "opened"
    assert all(lot.item_id == sample_item.id for lot in loaded.lots)


def test_draft_lot_is_not_persisted(store):
    assert store.save_lot(Lot(expiration_date=date(2026, 5, 1))) is False


def test_lot_for_unknown_item_fails(store):
    assert store.save_lot(Lot(item_id="missing")) is False


def test_delete_item_cascades(store, sample_item, tmp_path):
    store.save_item(sample_item)
    store.save_lot(Lot(item_id=sample_item.id))
    store.save_lot(Lot(item_id=sample_item.id))

    assert store.delete_item(sample_item.id) is True
    assert store.load_items() == []

    conn = sqlite3.connect(tmp_path / "test.db")
    assert conn.execute("SELECT COUNT(*) FROM lots").fetchone()[0] == 0
    conn.close()


def test_delete_lot_keeps_siblings(store, sample_item):
    store.save_item(sample_item)
    keep = Lot(item_id=sample_item.id)
    drop = Lot(item_id=sample_item.id)
    store.save_lot(keep)
    store.save_lot(drop)

    store.delete_lot(drop.id)

    [loaded] = store.load_items()
    assert [lot.id for lot in loaded.lots] == [keep.id]


def test_load_orders_by_updated_desc(store):
    old = Item(name="old", updated_at=datetime(2026, 1, 1))
    new = Item(name="new", updated_at=datetime(2026, 2, 1))
    store.save_item(old)
    store.save_item(new)

    assert [i.name for i in store.load_items()] == ["new", "old"]


def test_sqlite_error_reported_as_false(store, sample_item):
    with patch.object(
        store, "_get_conn", side_effect=sqlite3.OperationalError("disk I/O error")
    ):
        assert store.save_item(sample_item) is False
        assert store.load_items() == []


def test_model_round_trip(tmp_path):
    """Changes made through InventoryModel survive a reload."""
    db_path = tmp_path / "pantry.db"
    store = SQLiteInventoryStore(db_path)
    model = InventoryModel(store)
    item = model.create_item(name="Pasta Shells", location="Pantry")
    keep = model.add_lot(item, expiration_date=date(2026, 9, 1))
    drop = model.add_lot(item, expiration_date=date(2026, 3, 1))
    model.delete_lot(drop)
    gone = model.create_item(name="Gone")
    model.add_lot(gone)
    model.delete_item(gone)
    store.close()

    reopened = SQLiteInventoryStore(db_path)
    fresh = InventoryModel(reopened)
    assert fresh.load() == 1
    loaded = fresh.get_item(item.id)
    assert loaded.name == "Pasta Shells"
    assert [lot.id for lot in loaded.lots] == [keep.id]
    assert fresh.failed_writes == []
    reopened.close()
