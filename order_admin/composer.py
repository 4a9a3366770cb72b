"""
Line-item composer for one order being created or edited.

Lines are keyed by product id, so a product can appear at most once;
selecting it again bumps the quantity instead of adding a row.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable, Iterator

from order_admin.models import OrderItem, Product


class OrderComposer:
    def __init__(self, order_id: int = 0):
        self.order_id = order_id
        self._lines: dict[int, OrderItem] = {}

    def load(self, items: Iterable[OrderItem]) -> None:
        """Replace the lines with ``items``; repeated products are merged."""
        self._lines = {}
        for item in items:
            existing = self._lines.get(item.product_id)
            if existing is not None:
                existing.qty += item.qty
            else:
                self._lines[item.product_id] = replace(item)

    def add_or_increment(self, product: Product) -> OrderItem:
        line = self._lines.get(product.id)
        if line is not None:
            line.qty += 1
            return line
        # Name and price are copied now; later catalog edits don't touch this line.
        line = OrderItem(
            order_id=self.order_id,
            product_id=product.id,
            product_name=product.name,
            qty=1,
            unit_price=product.unit_price,
        )
        self._lines[product.id] = line
        return line

    def set_quantity(self, product_id: int, qty: int) -> None:
        if qty <= 0:
            self.remove(product_id)
            return
        line = self._lines.get(product_id)
        if line is not None:
            line.qty = qty

    def remove(self, product_id: int) -> None:
        self._lines.pop(product_id, None)

    def totals(self) -> dict:
        return {
            "total_products": sum(line.qty for line in self._lines.values()),
            "final_price": sum(line.subtotal for line in self._lines.values()),
        }

    @property
    def lines(self) -> list[OrderItem]:
        return list(self._lines.values())

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[OrderItem]:
        return iter(self.lines)

    def __contains__(self, product_id) -> bool:
        return product_id in self._lines
