"""
Order collection view-model — the order list page: filter, aggregate
statistics, status cycling and delete.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from order_admin.api_client import ApiClient
from order_admin.errors import FetchError
from order_admin.models import Order

logger = logging.getLogger(__name__)

_NEXT_STATUS = {
    "Pending": "InProgress",
    "InProgress": "Completed",
    "Completed": "Pending",
}


def cycle_status(status: str) -> str:
    """Pending -> InProgress -> Completed -> Pending."""
    try:
        return _NEXT_STATUS[status]
    except KeyError:
        raise ValueError(f"Unknown order status: {status!r}") from None


def parse_final_price(order: Order) -> float:
    """Numeric value of ``final_price``; unparseable values count as 0."""
    try:
        value = float(order.final_price)
    except (TypeError, ValueError):
        value = None
    if value is None or value != value or value in (float("inf"), float("-inf")):
        logger.warning("Order %s has non-numeric final_price %r; counting it as 0",
                       order.id, order.final_price)
        return 0.0
    return value


def filter_orders(orders: Iterable[Order], term: str = "") -> list[Order]:
    needle = (term or "").lower()
    return [
        o for o in orders
        if needle in o.order_number.lower()
        or needle in ("" if o.id is None else str(o.id))
    ]


def order_stats(orders: Iterable[Order]) -> dict:
    orders = list(orders)
    count = len(orders)
    revenue = sum(parse_final_price(o) for o in orders)
    return {
        "count": count,
        "revenue": revenue,
        "pending_count": sum(1 for o in orders if o.status == "Pending"),
        "avg_value": revenue / count if count else 0,
    }


class OrderCollection:
    def __init__(self, api: ApiClient):
        self.api = api
        self.orders: list[Order] = []
        self.error: Optional[str] = None

    async def load(self) -> list[Order]:
        try:
            orders = await self.api.list_orders()
        except FetchError as e:
            self.error = str(e)
            logger.error("Failed to load orders: %s", e)
            raise
        self.orders = orders
        self.error = None
        logger.info("Loaded %d orders", len(orders))
        return orders

    def get(self, order_id: int) -> Optional[Order]:
        for o in self.orders:
            if o.id == order_id:
                return o
        return None

    def filter(self, term: str = "") -> list[Order]:
        return filter_orders(self.orders, term)

    def stats(self, orders: Optional[Iterable[Order]] = None) -> dict:
        return order_stats(self.orders if orders is None else orders)

    async def change_status(self, order_id: int) -> str:
        """Move the order to its next status on the backend, then reload."""
        order = self.get(order_id)
        if order is None:
            raise KeyError(order_id)
        new_status = cycle_status(order.status)
        await self.api.change_order_status(order_id, new_status)
        logger.info("Order %s status %s -> %s", order_id, order.status, new_status)
        await self.load()
        return new_status

    async def delete(self, order_id: int) -> None:
        await self.api.delete_order(order_id)
        logger.info("Deleted order %s", order_id)
        await self.load()
