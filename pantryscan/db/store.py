"""Item and lot persistence: the store interface and its SQLite backend."""

from __future__ import annotations

import logging
import sqlite3
from abc import ABC, abstractmethod
from datetime import date, datetime
from pathlib import Path

from ..config import DEFAULT_DB_PATH
from ..models import Item, Location, Lot
from .schema import ensure_schema

logger = logging.getLogger(__name__)


class InventoryStore(ABC):
    """Persistence collaborator for items and lots.

    Writes report failure as False rather than raising; the inventory model
    decides what to do about it.
    """

    @abstractmethod
    def save_item(self, item: Item) -> bool:
        """Insert or update the item's own fields (not its lots)."""
        ...

    @abstractmethod
    def delete_item(self, item_id: str) -> bool:
        """Delete an item and, by cascade, all of its lots."""
        ...

    @abstractmethod
    def save_lot(self, lot: Lot) -> bool:
        """Insert or update a lot. The lot must already have an item_id."""
        ...

    @abstractmethod
    def delete_lot(self, lot_id: str) -> bool:
        ...

    @abstractmethod
    def load_items(self) -> list[Item]:
        """Return all items with their lots, most recently updated first."""
        ...


class SQLiteInventoryStore(InventoryStore):
    """Manages the items and lots tables."""

    def __init__(self, db_path: str | Path = DEFAULT_DB_PATH) -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = ensure_schema(self._db_path)
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def save_item(self, item: Item) -> bool:
        return self._write(
            """INSERT INTO items
               (id, name, brand, size, barcode, location,
                quantity, par_level, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
               ON CONFLICT(id) DO UPDATE SET
                 name=excluded.name,
                 brand=excluded.brand,
                 size=excluded.size,
                 barcode=excluded.barcode,
                 location=excluded.location,
                 quantity=excluded.quantity,
                 par_level=excluded.par_level,
                 updated_at=excluded.updated_at""",
            (
                item.id,
                item.name,
                item.brand,
                item.size,
                item.barcode,
                Location.parse(item.location).value,
                item.quantity,
                item.par_level,
                item.created_at.isoformat(),
                item.updated_at.isoformat(),
            ),
        )

    def delete_item(self, item_id: str) -> bool:
        return self._write("DELETE FROM items WHERE id = ?", (item_id,))

    def save_lot(self, lot: Lot) -> bool:
        if lot.item_id is None:
            logger.warning("Refusing to persist lot %s without an owning item", lot.id)
            return False
        return self._write(
            """INSERT INTO lots (id, item_id, expiration_date, opened_at, notes)
               VALUES (?, ?, ?, ?, ?)
               ON CONFLICT(id) DO UPDATE SET
                 item_id=excluded.item_id,
                 expiration_date=excluded.expiration_date,
                 opened_at=excluded.opened_at,
                 notes=excluded.notes""",
            (
                lot.id,
                lot.item_id,
                _iso(lot.expiration_date),
                _iso(lot.opened_at),
                lot.notes,
            ),
        )

    def delete_lot(self, lot_id: str) -> bool:
        return self._write("DELETE FROM lots WHERE id = ?", (lot_id,))

    def load_items(self) -> list[Item]:
        try:
            conn = self._get_conn()
            item_rows = conn.execute(
                "SELECT * FROM items ORDER BY updated_at DESC"
            ).fetchall()
            lot_rows = conn.execute("SELECT * FROM lots ORDER BY rowid").fetchall()
        except sqlite3.Error:
            logger.exception("Failed to load items from %s", self._db_path)
            return []

        lots_by_item: dict[str, list[Lot]] = {}
        for r in lot_rows:
            lots_by_item.setdefault(r["item_id"], []).append(
                Lot(
                    id=r["id"],
                    expiration_date=_date(r["expiration_date"]),
                    opened_at=_date(r["opened_at"]),
                    notes=r["notes"],
                    item_id=r["item_id"],
                )
            )

        return [
            Item(
                id=r["id"],
                name=r["name"],
                brand=r["brand"],
                size=r["size"],
                barcode=r["barcode"],
                location=Location.parse(r["location"]),
                quantity=r["quantity"],
                par_level=r["par_level"],
                created_at=datetime.fromisoformat(r["created_at"]),
                updated_at=datetime.fromisoformat(r["updated_at"]),
                lots=lots_by_item.get(r["id"], []),
            )
            for r in item_rows
        ]

    def _write(self, sql: str, params: tuple) -> bool:
        try:
            conn = self._get_conn()
            with conn:
                conn.execute(sql, params)
        except sqlite3.Error:
            logger.exception("SQLite write failed on %s", self._db_path)
            return False
        return True


def _iso(value: date | None) -> str | None:
    return value.isoformat() if value else None


def _date(value: str | None) -> date | None:
    return date.fromisoformat(value) if value else None
