"""
Order persistence — writes an order header, then fans out one call per
line item and joins them before reporting.

The two phases are not atomic: the backend has no transactions, so when a
line call fails after the header was written the caller gets a
``PartialSaveError`` describing what is left to reconcile.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from datetime import date
from typing import Literal, Sequence

from order_admin.api_client import ApiClient
from order_admin.errors import EmptyOrderError, FetchError, PartialSaveError
from order_admin.models import Order, OrderItem, format_price

logger = logging.getLogger(__name__)

SaveMode = Literal["create", "update"]


def compute_totals(lines: Sequence[OrderItem]) -> tuple[int, str]:
    """Return ``(total_products, final_price)`` derived from ``lines``."""
    total_products = sum(line.qty for line in lines)
    final_price = sum(line.subtotal for line in lines)
    return total_products, format_price(final_price)


class OrderOrchestrator:
    def __init__(self, api: ApiClient):
        self.api = api

    async def save(self, mode: SaveMode, header: Order, lines: Sequence[OrderItem]) -> Order:
        if mode not in ("create", "update"):
            raise ValueError(f"Unknown save mode: {mode!r}")
        # Snapshot before the first await so header totals and line writes agree.
        lines = [replace(line) for line in lines]
        if not lines:
            raise EmptyOrderError()

        total_products, final_price = compute_totals(lines)
        header = replace(header, total_products=total_products, final_price=final_price)

        if mode == "update":
            if header.id is None:
                raise ValueError("Updating an order requires its id")
            updated = await self.api.update_order(header.id, header.to_payload())
            order = updated or header
            send = self.api.update_order_line
        else:
            header = replace(
                header,
                id=None,
                order_date=header.order_date or date.today().isoformat(),
                status=header.status or "Pending",
            )
            order = await self.api.create_order(header.to_payload())
            send = self.api.create_order_line

        logger.info("Saved order header %s (%s), writing %d line(s)",
                    order.id, mode, len(lines))

        bound = [replace(line, order_id=order.id) for line in lines]
        results = await asyncio.gather(
            *(send(line.to_payload()) for line in bound),
            return_exceptions=True,
        )

        failures = []
        for line, result in zip(bound, results):
            if isinstance(result, FetchError):
                failures.append((line, result))
            elif isinstance(result, BaseException):
                raise result

        if failures:
            logger.warning("Order %s saved with %d failed line(s): %s", order.id,
                           len(failures), [line.product_id for line, _ in failures])
            raise PartialSaveError(order, failures)
        return order
