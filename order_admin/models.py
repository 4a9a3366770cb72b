"""
Data models — plain dataclasses mirroring the remote API payloads.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Literal, Optional

OrderStatus = Literal["Pending", "InProgress", "Completed"]
ORDER_STATUSES: tuple[str, ...] = ("Pending", "InProgress", "Completed")


def format_price(amount: float) -> str:
    """Decimal string with two places, as stored in ``Order.final_price``."""
    return f"{amount:.2f}"


@dataclass
class Product:
    id: int = 0
    name: str = ""
    unit_price: float = 0.0
    image_url: str = ""

    @classmethod
    def from_payload(cls, data: dict) -> "Product":
        return cls(
            id=int(data["id"]),
            name=str(data["name"]),
            unit_price=float(data["unit_price"]),
            image_url=str(data.get("image_url") or ""),
        )

    def to_payload(self) -> dict:
        return {"name": self.name, "unit_price": self.unit_price, "image_url": self.image_url}


@dataclass
class OrderItem:
    order_id: int = 0
    product_id: int = 0
    product_name: str = ""
    qty: int = 1
    unit_price: float = 0.0

    @property
    def subtotal(self):
        return self.qty * self.unit_price

    @classmethod
    def from_payload(cls, data: dict) -> "OrderItem":
        return cls(
            order_id=int(data.get("order_id") or 0),
            product_id=int(data["product_id"]),
            product_name=str(data.get("product_name") or ""),
            qty=int(data["qty"]),
            unit_price=float(data["unit_price"]),
        )

    def to_payload(self) -> dict:
        return asdict(self)


@dataclass
class Order:
    id: Optional[int] = None
    order_number: str = ""
    order_date: str = ""
    total_products: int = 0
    final_price: str = "0.00"
    status: str = "Pending"

    @classmethod
    def from_payload(cls, data: dict) -> "Order":
        status = str(data.get("status") or "Pending")
        if status not in ORDER_STATUSES:
            raise ValueError(f"Unknown order status: {status!r}")
        order_date = str(data.get("order_date") or "")
        return cls(
            id=int(data["id"]) if data.get("id") is not None else None,
            order_number=str(data.get("order_number") or ""),
            # Backends often send full timestamps; keep the calendar date only.
            order_date=order_date[:10],
            total_products=int(data.get("total_products") or 0),
            final_price=str(data.get("final_price") if data.get("final_price") is not None else "0.00"),
            status=status,
        )

    def to_payload(self) -> dict:
        data = asdict(self)
        if data["id"] is None:
            del data["id"]
        return data
