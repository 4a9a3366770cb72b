"""
Catalog store — the product list for one page visit, plus search, sort,
statistics and validated product writes.
"""

from __future__ import annotations

import logging
from typing import Iterator, Literal, Optional, Sequence

from order_admin.api_client import ApiClient
from order_admin.errors import FetchError, ValidationError
from order_admin.models import Product
from order_admin.utils.validators import validate_product

logger = logging.getLogger(__name__)

SortKey = Literal["name", "unit_price"]
SortOrder = Literal["asc", "desc"]
SORT_KEYS = ("name", "unit_price")
SORT_ORDERS = ("asc", "desc")


def search_products(products: Sequence[Product], term: str = "") -> Iterator[Product]:
    """Lazily yield products whose name contains ``term``, ignoring case."""
    needle = (term or "").lower()
    return (p for p in products if needle in p.name.lower())


def sort_products(products, by: SortKey = "name", order: SortOrder = "asc") -> list[Product]:
    """
    Return a new list sorted by name (case-insensitive) or unit price.

    Stable in both directions: equal keys keep their input order even when
    ``order`` is ``"desc"``.
    """
    if by not in SORT_KEYS:
        raise ValueError(f"Unknown sort key: {by!r}")
    if order not in SORT_ORDERS:
        raise ValueError(f"Unknown sort order: {order!r}")
    if by == "name":
        key = lambda p: p.name.lower()
    else:
        key = lambda p: p.unit_price
    return sorted(products, key=key, reverse=(order == "desc"))


class CatalogStore:
    def __init__(self, api: ApiClient):
        self.api = api
        self.products: list[Product] = []
        self.error: Optional[str] = None

    async def load(self) -> list[Product]:
        """Replace the cached products with a fresh fetch.

        On failure the previous list is left as it was and the error is re-raised.
        """
        try:
            products = await self.api.list_products()
        except FetchError as e:
            self.error = str(e)
            logger.error("Failed to load products: %s", e)
            raise
        self.products = products
        self.error = None
        logger.info("Loaded %d products", len(products))
        return products

    def get(self, product_id: int) -> Optional[Product]:
        for p in self.products:
            if p.id == product_id:
                return p
        return None

    def search(self, term: str = "") -> Iterator[Product]:
        return search_products(self.products, term)

    def sort(self, products=None, by: SortKey = "name", order: SortOrder = "asc") -> list[Product]:
        return sort_products(self.products if products is None else products, by, order)

    def query(self, term: str = "", by: SortKey = "name", order: SortOrder = "asc") -> list[Product]:
        return sort_products(self.search(term), by, order)

    def stats(self) -> dict:
        prices = [p.unit_price for p in self.products]
        if not prices:
            return {"total_products": 0, "average_price": 0, "highest_price": 0, "lowest_price": 0}
        return {
            "total_products": len(prices),
            "average_price": sum(prices) / len(prices),
            "highest_price": max(prices),
            "lowest_price": min(prices),
        }

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def save_product(self, data: dict, product_id: Optional[int] = None) -> None:
        """Validate ``data``, create or update the product, then reload."""
        errors = validate_product(data)
        if errors:
            raise ValidationError(errors)
        payload = {
            "name": data["name"].strip(),
            "unit_price": float(data["unit_price"]),
            "image_url": data["image_url"].strip(),
        }
        if product_id is None:
            await self.api.create_product(payload)
            logger.info("Created product %r", payload["name"])
        else:
            await self.api.update_product(product_id, payload)
            logger.info("Updated product %s", product_id)
        await self.load()

    async def delete_product(self, product_id: int) -> None:
        await self.api.delete_product(product_id)
        logger.info("Deleted product %s", product_id)
        await self.load()
