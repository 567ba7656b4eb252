"""Static product table standing in for a remote catalog."""

from __future__ import annotations

from . import CatalogBackend, Product

_FIXTURE: dict[str, Product] = {
    "012345678905": Product(name="Tomato Soup", brand="Acme", size="10.75 oz"),
    "041898123456": Product(name="Pasta Shells", brand="Casa Viva", size="16 oz"),
    "071234500001": Product(name="Whole Milk", brand="Lone Star", size="1 gal"),
}


class FixtureCatalog(CatalogBackend):
    """Serve products from a fixed in-memory table.

    Useful for demos and tests until a real catalog service is wired in.
    """

    def __init__(self, products: dict[str, Product] | None = None) -> None:
        self._products = dict(_FIXTURE if products is None else products)

    async def fetch(self, code: str) -> Product | None:
        return self._products.get(code)
