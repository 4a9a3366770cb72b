"""
Shared fixtures: an in-memory fake of the remote Order/Product API served
through httpx.MockTransport, and clients wired to it.
"""

import asyncio
import copy
import json

import httpx
import pytest
from fastapi.testclient import TestClient

from order_admin import main
from order_admin.api_client import ApiClient

BASE_URL = "http://backend.test/api"

PRODUCTS = [
    {"id": 1, "name": "Widget Pro", "unit_price": 29.99, "image_url": "https://img.example.com/w.png"},
    {"id": 2, "name": "mega cable", "unit_price": 12.5, "image_url": "https://img.example.com/c.png"},
    {"id": 3, "name": "Adapter", "unit_price": 12.5, "image_url": "https://img.example.com/a.png"},
]

ORDERS = [
    {"id": 7, "order_number": "ORD-001", "order_date": "2024-05-01",
     "total_products": 2, "final_price": "25.00", "status": "Pending"},
    {"id": 17, "order_number": "ORD-002", "order_date": "2024-05-02",
     "total_products": 2, "final_price": "59.98", "status": "InProgress"},
    {"id": 28, "order_number": "A7", "order_date": "2024-05-03",
     "total_products": 1, "final_price": "12.50", "status": "Completed"},
]

LINES = {
    7: [{"order_id": 7, "product_id": 2, "product_name": "mega cable", "qty": 2, "unit_price": 12.5}],
}


class FakeBackend:
    """Tiny stand-in for the REST backend; records every call it receives."""

    def __init__(self):
        self.products = copy.deepcopy(PRODUCTS)
        self.orders = copy.deepcopy(ORDERS)
        self.lines = copy.deepcopy(LINES)
        self.calls = []
        self.fail = set()          # {(method, path)} answered with HTTP 500
        self.fail_lines = set()    # product ids whose line calls fail
        self.next_id = 100

    def calls_to(self, method, path=None):
        return [c for c in self.calls if c[0] == method and (path is None or c[1] == path)]

    def _new_id(self):
        self.next_id += 1
        return self.next_id

    def _find(self, rows, row_id):
        for row in rows:
            if row["id"] == row_id:
                return row
        return None

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path[len("/api"):]
        method = request.method
        body = json.loads(request.content) if request.content else None
        self.calls.append((method, path, body))

        if (method, path) in self.fail:
            return httpx.Response(500, json={"error": "boom"})

        parts = path.strip("/").split("/")
        resource = parts[0]

        if resource == "products":
            return self._products(method, parts[1:], body)
        if resource == "orders":
            return self._orders(method, parts[1:], body)
        return httpx.Response(404, json={"error": "not found"})

    def _products(self, method, rest, body):
        if not rest:
            if method == "GET":
                return httpx.Response(200, json={"data": self.products})
            if method == "POST":
                product = {"id": self._new_id(), **body}
                self.products.append(product)
                return httpx.Response(201, json={"data": product})
        elif rest[0] == "findByOrderId":
            return httpx.Response(200, json={"data": self.lines.get(int(rest[1]), [])})
        else:
            product = self._find(self.products, int(rest[0]))
            if product is None:
                return httpx.Response(404, json={"error": "not found"})
            if method == "GET":
                return httpx.Response(200, json={"data": product})
            if method == "PUT":
                product.update(body)
                return httpx.Response(200, json={"data": product})
            if method == "DELETE":
                self.products.remove(product)
                return httpx.Response(200, json={"data": None})
        return httpx.Response(405)

    def _orders(self, method, rest, body):
        if not rest:
            if method == "GET":
                return httpx.Response(200, json={"data": self.orders})
            if method == "POST":
                order = {**body, "id": self._new_id()}
                self.orders.append(order)
                return httpx.Response(201, json={"data": order})
        elif rest[0] in ("createDetails", "updateDetails"):
            if body["product_id"] in self.fail_lines:
                return httpx.Response(500, json={"error": "line failed"})
            lines = self.lines.setdefault(body["order_id"], [])
            lines[:] = [l for l in lines if l["product_id"] != body["product_id"]]
            lines.append(body)
            return httpx.Response(200, json={"data": body})
        elif rest[0] == "changeStatus":
            order = self._find(self.orders, int(rest[1]))
            order["status"] = body["status"]
            return httpx.Response(200, json={"data": order})
        else:
            order = self._find(self.orders, int(rest[0]))
            if order is None:
                return httpx.Response(404, json={"error": "not found"})
            if method == "GET":
                return httpx.Response(200, json={"data": order})
            if method == "PUT":
                order.update(body)
                return httpx.Response(200, json={"data": order})
            if method == "DELETE":
                self.orders.remove(order)
                return httpx.Response(200, json={"data": None})
        return httpx.Response(405)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def api(backend):
    return ApiClient(base_url=BASE_URL, transport=httpx.MockTransport(backend.handler))


@pytest.fixture
def client(api):
    main.use_api(api)
    with TestClient(main.app) as c:
        yield c


class GatedApi:
    """Delegates to a real ApiClient but holds the order header call until released."""

    def __init__(self, api):
        self._api = api
        self.header_started = asyncio.Event()
        self.release = asyncio.Event()

    def __getattr__(self, name):
        return getattr(self._api, name)

    async def _hold(self):
        self.header_started.set()
        await self.release.wait()

    async def create_order(self, data):
        await self._hold()
        return await self._api.create_order(data)

    async def update_order(self, order_id, data):
        await self._hold()
        return await self._api.update_order(order_id, data)


@pytest.fixture
def gated_api(api):
    return GatedApi(api)
