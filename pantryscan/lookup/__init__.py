"""Product catalog backends, the memoizing lookup cache, and factory."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..config import PantryConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Product:
    name: str
    brand: str | None = None
    size: str | None = None


class CatalogError(Exception):
    """Raised by a catalog backend when a fetch fails (as opposed to a miss)."""


class CatalogBackend(ABC):
    """Abstract source of product metadata keyed by barcode."""

    @abstractmethod
    async def fetch(self, code: str) -> Product | None:
        """Fetch the product for a barcode, or None if the catalog has none.

        Raises:
            CatalogError: If the catalog could not be queried.
        """
        ...


class ProductLookupCache:
    """Memoizes catalog hits and coalesces concurrent fetches per code.

    Hits are kept for the lifetime of the cache. Misses are not cached, so a
    code the catalog doesn't know is re-queried on every lookup. While a fetch
    for a code is in flight, further lookups for that code wait on the same
    fetch instead of starting a new one.
    """

    def __init__(self, catalog: CatalogBackend) -> None:
        self._catalog = catalog
        self._cache: dict[str, Product] = {}
        self._inflight: dict[str, asyncio.Task[Product | None]] = {}
        self.fetch_count = 0

    def __contains__(self, code: str) -> bool:
        return code in self._cache

    def __len__(self) -> int:
        return len(self._cache)

    def clear(self) -> None:
        self._cache.clear()

    async def lookup(self, code: str) -> Product | None:
        code = code.strip() if code else ""
        if not code:
            return None

        cached = self._cache.get(code)
        if cached is not None:
            logger.debug("Catalog cache hit: %s", code)
            return cached

        task = self._inflight.get(code)
        if task is None:
            task = asyncio.ensure_future(self._fetch(code))
            self._inflight[code] = task
            task.add_done_callback(lambda t: self._forget(code, t))
        else:
            logger.debug("Joining in-flight catalog fetch: %s", code)

        # Shielded so one cancelled waiter does not cancel the shared fetch.
        return await asyncio.shield(task)

    def _forget(self, code: str, task: asyncio.Task[Product | None]) -> None:
        if self._inflight.get(code) is task:
            del self._inflight[code]

    async def _fetch(self, code: str) -> Product | None:
        self.fetch_count += 1
        try:
            product = await self._catalog.fetch(code)
        except CatalogError:
            logger.warning("Catalog fetch failed for %s", code, exc_info=True)
            return None

        if product is None:
            logger.info("No catalog entry for %s", code)
            return None

        self._cache[code] = product
        return product


def create_catalog(config: PantryConfig) -> CatalogBackend:
    """Create a catalog backend based on configuration."""
    backend_name = config.lookup.backend

    match backend_name:
        case "fixture":
            from .fixture import FixtureCatalog

            return FixtureCatalog()
        case "json":
            from .jsonfile import JsonFileCatalog

            return JsonFileCatalog(config.lookup.catalog_path)
        case _:
            raise ValueError(
                f"Unknown catalog backend: {backend_name!r} "
                f"(choose fixture / json)"
            )


__all__ = [
    "Product",
    "CatalogError",
    "CatalogBackend",
    "ProductLookupCache",
    "create_catalog",
]
