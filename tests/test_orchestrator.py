import asyncio
from datetime import date

import pytest

from order_admin.errors import EmptyOrderError, FetchError, PartialSaveError
from order_admin.models import Order, OrderItem
from order_admin.orchestrator import OrderOrchestrator, compute_totals


def _lines(order_id=0):
    return [
        OrderItem(order_id=order_id, product_id=1, product_name="Widget", qty=2, unit_price=2.5),
        OrderItem(order_id=order_id, product_id=2, product_name="Cable", qty=3, unit_price=4.25),
    ]


def test_compute_totals():
    assert compute_totals(_lines()) == (5, "17.75")


@pytest.mark.asyncio
async def test_empty_save_makes_no_calls(api, backend):
    with pytest.raises(EmptyOrderError):
        await OrderOrchestrator(api).save("create", Order(order_number="N-1"), [])
    assert backend.calls == []


@pytest.mark.asyncio
async def test_create_recomputes_totals_and_writes_lines(api, backend):
    stale = Order(order_number="N-1", total_products=999, final_price="1.00")
    order = await OrderOrchestrator(api).save("create", stale, _lines())

    header = backend.calls_to("POST", "/orders")[0][2]
    assert header["total_products"] == 5
    assert header["final_price"] == "17.75"
    assert header["status"] == "Pending"
    assert header["order_date"] == date.today().isoformat()
    assert "id" not in header

    assert order.id == backend.next_id
    assert order.total_products == 5
    line_calls = backend.calls_to("POST", "/orders/createDetails")
    assert sorted(c[2]["product_id"] for c in line_calls) == [1, 2]
    assert all(c[2]["order_id"] == order.id for c in line_calls)


@pytest.mark.asyncio
async def test_update_uses_update_calls(api, backend):
    header = Order(id=7, order_number="ORD-001", order_date="2024-05-01", status="Pending")
    order = await OrderOrchestrator(api).save("update", header, _lines(order_id=0))

    put = backend.calls_to("PUT", "/orders/7")[0][2]
    assert put["total_products"] == 5
    assert put["final_price"] == "17.75"
    assert order.id == 7
    line_calls = backend.calls_to("PUT", "/orders/updateDetails")
    assert len(line_calls) == 2
    assert all(c[2]["order_id"] == 7 for c in line_calls)
    assert backend.calls_to("POST") == []


@pytest.mark.asyncio
async def test_update_requires_id(api):
    with pytest.raises(ValueError):
        await OrderOrchestrator(api).save("update", Order(order_number="X"), _lines())


@pytest.mark.asyncio
async def test_one_failed_line_is_partial_save(api, backend):
    backend.fail_lines.add(2)
    with pytest.raises(PartialSaveError) as exc:
        await OrderOrchestrator(api).save("create", Order(order_number="N-2"), _lines())

    err = exc.value
    assert [line.product_id for line in err.failed_lines] == [2]
    assert isinstance(err.failures[0][1], FetchError)
    assert err.order.id == backend.next_id
    # the successful line stays written
    saved = backend.lines[err.order.id]
    assert [l["product_id"] for l in saved] == [1]


@pytest.mark.asyncio
async def test_header_failure_skips_lines(api, backend):
    backend.fail.add(("POST", "/orders"))
    with pytest.raises(FetchError):
        await OrderOrchestrator(api).save("create", Order(order_number="N-3"), _lines())
    assert backend.calls_to("POST", "/orders/createDetails") == []


class _SlowLinesApi:
    """Line calls that only finish once every call has started."""

    def __init__(self, expected):
        self.expected = expected
        self.started = 0
        self.finished = 0
        self.all_started = asyncio.Event()

    async def create_order(self, data):
        return Order(id=5, **{k: v for k, v in data.items() if k != "id"})

    async def create_order_line(self, data):
        self.started += 1
        if self.started == self.expected:
            self.all_started.set()
        await self.all_started.wait()
        await asyncio.sleep(0)
        self.finished += 1


@pytest.mark.asyncio
async def test_line_calls_run_concurrently_and_are_joined():
    fake = _SlowLinesApi(expected=2)
    order = await OrderOrchestrator(fake).save("create", Order(order_number="N-4"), _lines())
    assert order.id == 5
    assert fake.finished == 2


@pytest.mark.asyncio
async def test_lines_changed_during_header_call_do_not_leak_into_save(gated_api, backend):
    lines = _lines()
    task = asyncio.create_task(
        OrderOrchestrator(gated_api).save("create", Order(order_number="N-5"), lines)
    )
    await gated_api.header_started.wait()
    lines[0].qty = 50
    lines.append(OrderItem(product_id=3, product_name="Adapter", qty=1, unit_price=12.5))
    gated_api.release.set()
    order = await task

    header = backend.calls_to("POST", "/orders")[0][2]
    written = {c[2]["product_id"]: c[2]["qty"] for c in backend.calls_to("POST", "/orders/createDetails")}
    assert written == {1: 2, 2: 3}
    assert header["total_products"] == sum(written.values()) == order.total_products
    assert header["final_price"] == "17.75"
