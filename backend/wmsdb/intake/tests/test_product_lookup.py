from __future__ import annotations

import asyncio
import json
from decimal import Decimal

import httpx
import pytest

from wmsdb.intake.client import ApiClient, ApiError
from wmsdb.intake.lookup import CatalogClient, LookupFailed, ProductLookup
from wmsdb.intake.schemas import StockEntry

DRILL_JSON = {
    "id": 1,
    "name": "Cordless Drill",
    "sku": "TOOL-1",
    "barcode": "012345678905",
    "description": None,
    "min_stock": 2,
    "price": "89.90",
    "requires_serial": False,
    "is_active": True,
    "created_at": "2024-05-01T08:00:00+00:00",
}


def _client(handler, token=None):
    return ApiClient("http://wms.test", transport=httpx.MockTransport(handler), token=token)


def _run(coro_factory, handler, token=None):
    async def scenario():
        async with _client(handler, token=token) as client:
            return await coro_factory(client)

    return asyncio.run(scenario())


def test_find_by_barcode_returns_product_and_sends_token():
    seen = {}

    def handler(request):
        seen["url"] = request.url
        seen["auth"] = request.headers.get("authorization")
        return httpx.Response(200, json=DRILL_JSON)

    product = _run(lambda c: ProductLookup(c).find_by_barcode("012345678905"), handler, token="abc")

    assert product.sku == "TOOL-1"
    assert product.price == Decimal("89.90")
    assert seen["url"].path == "/api/products"
    assert seen["url"].params["barcode"] == "012345678905"
    assert seen["auth"] == "Bearer abc"


def test_find_by_barcode_404_means_not_found():
    def handler(request):
        return httpx.Response(404, json={"detail": "Product not found"})

    assert _run(lambda c: ProductLookup(c).find_by_barcode("999"), handler) is None


@pytest.mark.parametrize("status_code", [401, 500, 503])
def test_find_by_barcode_other_statuses_fail(status_code):
    def handler(request):
        return httpx.Response(status_code, json={"detail": "nope"})

    with pytest.raises(LookupFailed) as exc:
        _run(lambda c: ProductLookup(c).find_by_barcode("999"), handler)
    assert str(status_code) in str(exc.value)


def test_find_by_barcode_network_error_fails_without_retry():
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(LookupFailed):
        _run(lambda c: ProductLookup(c).find_by_barcode("999"), handler)
    assert len(calls) == 1


def test_find_by_barcode_invalid_url_fails():
    def handler(request):
        raise httpx.InvalidURL("Invalid non-printable ASCII character in URL")

    with pytest.raises(LookupFailed):
        _run(lambda c: ProductLookup(c).find_by_barcode("999"), handler)


def test_find_by_barcode_rejects_malformed_payload():
    def handler(request):
        return httpx.Response(200, json={"unexpected": True})

    with pytest.raises(LookupFailed):
        _run(lambda c: ProductLookup(c).find_by_barcode("999"), handler)


def test_api_client_raises_api_error_with_detail():
    def handler(request):
        return httpx.Response(409, json={"detail": "Barcode already assigned"})

    with pytest.raises(ApiError) as exc:
        _run(lambda c: CatalogClient(c).associate_barcode(2, "012345678905"), handler)
    assert exc.value.status_code == 409
    assert exc.value.detail == "Barcode already assigned"


def test_catalog_client_requests():
    requests = []

    def handler(request):
        requests.append(request)
        if request.method == "POST" and request.url.path == "/api/products":
            return httpx.Response(201, json=DRILL_JSON)
        if request.method == "GET":
            return httpx.Response(200, json=[{**DRILL_JSON, "id": 2, "sku": "TOOL-2", "barcode": None}])
        if request.method == "PUT":
            return httpx.Response(200, json={**DRILL_JSON, "id": 2, "sku": "TOOL-2"})
        return httpx.Response(201, json={"id": 10, "quantity": 3})

    async def calls(client):
        catalog = CatalogClient(client)
        created = await catalog.create_product(
            name="Cordless Drill", sku="TOOL-1", barcode="012345678905", price=Decimal("89.90")
        )
        candidates = await catalog.association_candidates(search="ham")
        associated = await catalog.associate_barcode(2, "012345678905")
        movement = await catalog.enter_stock(
            StockEntry(product_id=1, cost_center="CC-100", quantity=3, unit_price=Decimal("10"))
        )
        return created, candidates, associated, movement

    created, candidates, associated, movement = _run(calls, handler)

    assert created.barcode == "012345678905"
    assert [p.sku for p in candidates] == ["TOOL-2"]
    assert associated.barcode == "012345678905"
    assert movement["quantity"] == 3

    create, listing, associate, stock = requests
    assert json.loads(create.content)["price"] == "89.90"
    assert listing.url.params["unbarcoded"] == "true"
    assert listing.url.params["search"] == "ham"
    assert associate.url.path == "/api/products/2/barcode"
    assert json.loads(associate.content) == {"barcode": "012345678905"}
    assert stock.url.path == "/api/stock-entry"
    assert json.loads(stock.content)["cost_center"] == "CC-100"
