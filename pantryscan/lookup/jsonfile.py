"""Catalog backend reading products from a local JSON file."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

from . import CatalogBackend, CatalogError, Product


class JsonFileCatalog(CatalogBackend):
    """Look up products in a JSON object keyed by barcode.

    The file is read on each fetch so edits are picked up without a restart::

        {"012345678905": {"name": "Tomato Soup", "brand": "Acme", "size": "10.75 oz"}}
    """

    def __init__(self, path: str | Path) -> None:
        if not path:
            raise ValueError(
                "catalog_path is not set. Check [lookup] in the config file."
            )
        self._path = Path(path).expanduser()

    async def fetch(self, code: str) -> Product | None:
        try:
            text = await asyncio.to_thread(self._path.read_text, encoding="utf-8")
            raw = json.loads(text)
        except (OSError, json.JSONDecodeError) as e:
            raise CatalogError(f"Cannot read catalog {self._path}: {e}") from e

        entry = raw.get(code) if isinstance(raw, dict) else None
        if not isinstance(entry, dict) or not entry.get("name"):
            return None
        return Product(
            name=entry["name"],
            brand=entry.get("brand") or None,
            size=entry.get("size") or None,
        )
