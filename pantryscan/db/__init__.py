"""SQLite persistence for pantry items and lots."""

from .schema import ensure_schema
from .store import InventoryStore, SQLiteInventoryStore

__all__ = [
    "InventoryStore",
    "SQLiteInventoryStore",
    "ensure_schema",
]
