"""
Order form session — state behind one "Add Order" / "Edit Order" screen.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Optional

from order_admin.api_client import ApiClient
from order_admin.catalog import CatalogStore
from order_admin.composer import OrderComposer
from order_admin.errors import PartialSaveError, SaveInProgressError
from order_admin.orchestrator import OrderOrchestrator
from order_admin.models import Order, OrderItem

logger = logging.getLogger(__name__)


class OrderForm:
    """
    Owns the catalog used for selection, the composer holding the lines
    and the order header. ``saving`` is true while a save is in flight;
    a second ``save()`` or any edit during that window raises
    ``SaveInProgressError``.
    """

    def __init__(self, api: ApiClient):
        self.api = api
        self.catalog = CatalogStore(api)
        self.composer = OrderComposer()
        self.orchestrator = OrderOrchestrator(api)
        self.editing: Optional[Order] = None
        self.order_number = ""
        self.saving = False

    @property
    def mode(self) -> str:
        return "update" if self.editing is not None else "create"

    async def open(self, order_id: Optional[int] = None) -> None:
        await self.catalog.load()
        if order_id is None:
            return
        order = await self.api.get_order(order_id)
        items = await self.api.list_products_by_order(order_id)
        self.editing = order
        self.order_number = order.order_number
        self.composer = OrderComposer(order_id=order.id)
        self.composer.load(items)
        logger.info("Editing order %s with %d line(s)", order.id, len(self.composer))

    def visible_products(self, term: str = ""):
        return list(self.catalog.search(term))

    def _ensure_idle(self) -> None:
        if self.saving:
            raise SaveInProgressError()

    def set_order_number(self, order_number: str) -> None:
        self._ensure_idle()
        self.order_number = order_number.strip()

    def add_product(self, product_id: int) -> OrderItem:
        self._ensure_idle()
        product = self.catalog.get(product_id)
        if product is None:
            raise KeyError(product_id)
        return self.composer.add_or_increment(product)

    def set_quantity(self, product_id: int, qty: int) -> None:
        self._ensure_idle()
        self.composer.set_quantity(product_id, qty)

    def remove_product(self, product_id: int) -> None:
        self._ensure_idle()
        self.composer.remove(product_id)

    def header(self) -> Order:
        if self.editing is not None:
            base = self.editing
            return Order(id=base.id, order_number=self.order_number, order_date=base.order_date,
                         total_products=base.total_products, final_price=base.final_price,
                         status=base.status)
        return Order(order_number=self.order_number)

    async def save(self) -> Order:
        self._ensure_idle()
        self.saving = True
        try:
            order = await self.orchestrator.save(self.mode, self.header(), self.composer.lines)
        except PartialSaveError as e:
            # The header exists now; a retry must update it, not create another.
            self.editing = e.order
            raise
        finally:
            self.saving = False
        self.editing = order
        return order

    def to_dict(self, term: str = "") -> dict:
        totals = self.composer.totals()
        return {
            "mode": self.mode,
            "order": self.header().to_payload(),
            "saving": self.saving,
            "lines": [
                {**line.to_payload(), "subtotal": line.subtotal}
                for line in self.composer.lines
            ],
            "totals": totals,
            "products": [asdict(p) for p in self.visible_products(term)],
        }
