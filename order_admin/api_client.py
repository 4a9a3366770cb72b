"""
Order/Product API client — wraps the remote REST backend over httpx.

Every endpoint answers with a ``{"data": ...}`` envelope. Any failure
(connection error, timeout, non-2xx status, undecodable body) is raised
as ``FetchError`` so callers handle one error kind.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from order_admin import config
from order_admin.errors import FetchError
from order_admin.models import Order, OrderItem, Product

logger = logging.getLogger(__name__)


class ApiClient:
    def __init__(self, base_url: str = config.API_BASE_URL,
                 timeout: float = config.API_TIMEOUT,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def _request(self, operation: str, method: str, path: str,
                       json: Any = None) -> Any:
        """Send one request and return the unwrapped ``data`` payload."""
        async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout,
                                     transport=self._transport) as client:
            try:
                resp = await client.request(method, path, json=json)
                resp.raise_for_status()
            except httpx.HTTPStatusError as e:
                logger.error("%s failed with HTTP %s", operation, e.response.status_code)
                raise FetchError(operation, f"HTTP {e.response.status_code}",
                                 e.response.status_code) from e
            except httpx.HTTPError as e:
                logger.error("%s failed: %s", operation, e)
                raise FetchError(operation, str(e) or type(e).__name__) from e

        if not resp.content:
            return None
        try:
            body = resp.json()
        except ValueError as e:
            raise FetchError(operation, "Response body is not valid JSON",
                             resp.status_code) from e
        if isinstance(body, dict) and "data" in body:
            return body["data"]
        return body

    @staticmethod
    def _parse(operation: str, parser, payload):
        try:
            return parser(payload)
        except (KeyError, TypeError, ValueError) as e:
            raise FetchError(operation, f"Malformed response: {e}") from e

    def _parse_list(self, operation: str, model, payload) -> list:
        if not isinstance(payload, list):
            raise FetchError(operation, "Malformed response: expected a list")
        return self._parse(operation, lambda rows: [model.from_payload(r) for r in rows], payload)

    # ---------------------------------------------------------------------
    # Products
    # ---------------------------------------------------------------------

    async def list_products(self) -> list[Product]:
        data = await self._request("listProducts", "GET", "/products")
        return self._parse_list("listProducts", Product, data)

    async def get_product(self, product_id: int) -> Product:
        data = await self._request("getProduct", "GET", f"/products/{product_id}")
        return self._parse("getProduct", Product.from_payload, data)

    async def list_products_by_order(self, order_id: int) -> list[OrderItem]:
        """Line items of one order (the backend serves them under /products)."""
        data = await self._request("listProductsByOrder", "GET",
                                   f"/products/findByOrderId/{order_id}")
        return self._parse_list("listProductsByOrder", OrderItem, data)

    async def create_product(self, data: dict) -> Optional[Product]:
        payload = await self._request("createProduct", "POST", "/products", json=data)
        if isinstance(payload, dict) and "id" in payload:
            return self._parse("createProduct", Product.from_payload, payload)
        return None

    async def update_product(self, product_id: int, data: dict) -> Optional[Product]:
        payload = await self._request("updateProduct", "PUT", f"/products/{product_id}", json=data)
        if isinstance(payload, dict) and "id" in payload:
            return self._parse("updateProduct", Product.from_payload, payload)
        return None

    async def delete_product(self, product_id: int) -> None:
        await self._request("deleteProduct", "DELETE", f"/products/{product_id}")

    # ---------------------------------------------------------------------
    # Orders
    # ---------------------------------------------------------------------

    async def list_orders(self) -> list[Order]:
        data = await self._request("listOrders", "GET", "/orders")
        return self._parse_list("listOrders", Order, data)

    async def get_order(self, order_id: int) -> Order:
        data = await self._request("getOrder", "GET", f"/orders/{order_id}")
        return self._parse("getOrder", Order.from_payload, data)

    async def create_order(self, data: dict) -> Order:
        """Create an order header; the returned order carries the server id."""
        payload = await self._request("createOrder", "POST", "/orders", json=data)
        order = self._parse("createOrder", Order.from_payload, payload)
        if order.id is None:
            raise FetchError("createOrder", "Malformed response: missing order id")
        return order

    async def update_order(self, order_id: int, data: dict) -> Optional[Order]:
        payload = await self._request("updateOrder", "PUT", f"/orders/{order_id}", json=data)
        if isinstance(payload, dict) and "id" in payload:
            return self._parse("updateOrder", Order.from_payload, payload)
        return None

    async def create_order_line(self, data: dict) -> None:
        await self._request("createOrderLine", "POST", "/orders/createDetails", json=data)

    async def update_order_line(self, data: dict) -> None:
        """Upsert a line keyed by ``(order_id, product_id)``."""
        await self._request("updateOrderLine", "PUT", "/orders/updateDetails", json=data)

    async def change_order_status(self, order_id: int, status: str) -> None:
        await self._request("changeOrderStatus", "PATCH", f"/orders/changeStatus/{order_id}",
                            json={"status": status})

    async def delete_order(self, order_id: int) -> None:
        await self._request("deleteOrder", "DELETE", f"/orders/{order_id}")
