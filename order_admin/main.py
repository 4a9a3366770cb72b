"""
Order Admin — HTTP API for the admin front-end.
FastAPI server exposing product and order list views, the order form
session and the write actions, all backed by the remote Order/Product API.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import asdict
from typing import Any, Literal, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from order_admin import __version__, config
from order_admin.api_client import ApiClient
from order_admin.catalog import CatalogStore
from order_admin.collection import OrderCollection
from order_admin.errors import (
    EmptyOrderError,
    FetchError,
    PartialSaveError,
    SaveInProgressError,
    ValidationError,
)
from order_admin.order_form import OrderForm

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------

app = FastAPI(title="Order Admin API", version=__version__, debug=config.DEBUG)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# In-memory view state
_api = ApiClient()
_catalog = CatalogStore(_api)
_orders = OrderCollection(_api)
_forms: dict[str, OrderForm] = {}


def use_api(api: ApiClient) -> None:
    """Point the app at another backend client and drop all view state."""
    global _api, _catalog, _orders
    _api = api
    _catalog = CatalogStore(api)
    _orders = OrderCollection(api)
    _forms.clear()


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------

class ProductRequest(BaseModel):
    # Field errors come from validate_product, not pydantic.
    name: Any = None
    unit_price: Any = None
    image_url: Any = None

class OpenFormRequest(BaseModel):
    order_id: Optional[int] = None

class HeaderRequest(BaseModel):
    order_number: str

class AddItemRequest(BaseModel):
    product_id: int

class QuantityRequest(BaseModel):
    qty: int


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------

@app.exception_handler(FetchError)
async def fetch_error_handler(request: Request, exc: FetchError):
    return JSONResponse(status_code=502, content={"error": str(exc), "detail": exc.to_dict()})

@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=422, content={"errors": exc.errors})

@app.exception_handler(EmptyOrderError)
async def empty_order_handler(request: Request, exc: EmptyOrderError):
    return JSONResponse(status_code=400, content={"error": str(exc)})

@app.exception_handler(SaveInProgressError)
async def save_in_progress_handler(request: Request, exc: SaveInProgressError):
    return JSONResponse(status_code=409, content={"error": str(exc)})

@app.exception_handler(PartialSaveError)
async def partial_save_handler(request: Request, exc: PartialSaveError):
    return JSONResponse(status_code=502, content={
        "error": str(exc),
        "partial": True,
        "order": exc.order.to_payload(),
        "failed_lines": [
            {**line.to_payload(), "error": str(err)} for line, err in exc.failures
        ],
    })


# ---------------------------------------------------------------------------
# Endpoints — Products
# ---------------------------------------------------------------------------

@app.get("/products")
async def list_products(q: str = "", sort_by: Literal["name", "unit_price"] = "name",
                        order: Literal["asc", "desc"] = "asc"):
    # A failed reload keeps the last list and reports the error alongside it.
    error = None
    try:
        await _catalog.load()
    except FetchError as e:
        error = str(e)
    return {
        "products": [asdict(p) for p in _catalog.query(q, sort_by, order)],
        "stats": _catalog.stats(),
        "error": error,
    }

@app.post("/products", status_code=201)
async def create_product(req: ProductRequest):
    await _catalog.save_product(req.model_dump())
    return {"status": "created", "products": [asdict(p) for p in _catalog.products]}

@app.put("/products/{product_id}")
async def update_product(product_id: int, req: ProductRequest):
    await _catalog.save_product(req.model_dump(), product_id=product_id)
    return {"status": "updated", "products": [asdict(p) for p in _catalog.products]}

@app.delete("/products/{product_id}")
async def delete_product(product_id: int):
    await _catalog.delete_product(product_id)
    return {"status": "deleted", "products": [asdict(p) for p in _catalog.products]}


# ---------------------------------------------------------------------------
# Endpoints — Orders
# ---------------------------------------------------------------------------

def _orders_view(q: str = "", error: Optional[str] = None) -> dict:
    return {
        "orders": [o.to_payload() for o in _orders.filter(q)],
        "stats": _orders.stats(),
        "error": error,
    }

@app.get("/orders")
async def list_orders(q: str = ""):
    error = None
    try:
        await _orders.load()
    except FetchError as e:
        error = str(e)
    return _orders_view(q, error)

@app.post("/orders/{order_id}/status")
async def change_order_status(order_id: int):
    if _orders.get(order_id) is None:
        await _orders.load()
    try:
        status = await _orders.change_status(order_id)
    except KeyError:
        raise HTTPException(404, f"Order not found: {order_id}")
    return {"order_id": order_id, "status": status, **_orders_view()}

@app.delete("/orders/{order_id}")
async def delete_order(order_id: int):
    await _orders.delete(order_id)
    return {"status": "deleted", **_orders_view()}


# ---------------------------------------------------------------------------
# Endpoints — Order form
# ---------------------------------------------------------------------------

def _evict_forms() -> None:
    """Drop the oldest idle sessions once more than MAX_ORDER_FORMS are open."""
    excess = len(_forms) - config.MAX_ORDER_FORMS
    for session_id in [sid for sid, f in _forms.items() if not f.saving][:max(excess, 0)]:
        logger.info("Discarding stale order form %s", session_id)
        del _forms[session_id]

def _get_form(session_id: str) -> OrderForm:
    form = _forms.get(session_id)
    if form is None:
        raise HTTPException(404, f"Order form not found: {session_id}")
    return form

@app.post("/order-forms", status_code=201)
async def open_order_form(req: OpenFormRequest):
    form = OrderForm(_api)
    await form.open(req.order_id)
    session_id = uuid.uuid4().hex
    _forms[session_id] = form
    _evict_forms()
    return {"session_id": session_id, **form.to_dict()}

@app.get("/order-forms/{session_id}")
async def get_order_form(session_id: str, q: str = ""):
    form = _get_form(session_id)
    return {"session_id": session_id, **form.to_dict(q)}

@app.put("/order-forms/{session_id}/header")
async def set_order_header(session_id: str, req: HeaderRequest):
    form = _get_form(session_id)
    form.set_order_number(req.order_number)
    return {"session_id": session_id, **form.to_dict()}

@app.post("/order-forms/{session_id}/items")
async def add_order_item(session_id: str, req: AddItemRequest):
    form = _get_form(session_id)
    try:
        form.add_product(req.product_id)
    except KeyError:
        raise HTTPException(404, f"Product not found: {req.product_id}")
    return {"session_id": session_id, **form.to_dict()}

@app.put("/order-forms/{session_id}/items/{product_id}")
async def set_item_quantity(session_id: str, product_id: int, req: QuantityRequest):
    form = _get_form(session_id)
    form.set_quantity(product_id, req.qty)
    return {"session_id": session_id, **form.to_dict()}

@app.delete("/order-forms/{session_id}/items/{product_id}")
async def remove_order_item(session_id: str, product_id: int):
    form = _get_form(session_id)
    form.remove_product(product_id)
    return {"session_id": session_id, **form.to_dict()}

@app.post("/order-forms/{session_id}/save")
async def save_order_form(session_id: str):
    form = _get_form(session_id)
    order = await form.save()
    _forms.pop(session_id, None)
    logger.info("Order form %s saved as order %s", session_id, order.id)
    return {"status": "saved", "order": order.to_payload()}

@app.delete("/order-forms/{session_id}")
async def close_order_form(session_id: str):
    _get_form(session_id)
    _forms.pop(session_id, None)
    return {"status": "closed"}


# ---------------------------------------------------------------------------
# Utilities
# ---------------------------------------------------------------------------

@app.get("/health")
async def health():
    return {"status": "ok", "api_base_url": _api.base_url, "open_forms": len(_forms)}


def run():
    import uvicorn
    uvicorn.run("order_admin.main:app", host=config.HOST, port=config.PORT)


if __name__ == "__main__":
    run()
