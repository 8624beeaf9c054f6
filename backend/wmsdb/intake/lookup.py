from __future__ import annotations

import logging
from typing import List, Optional

import httpx

from .client import ApiClient, ApiError
from .schemas import Product, StockEntry

logger = logging.getLogger(__name__)


class LookupFailed(Exception):
    """The barcode lookup could not be completed (network or server error)."""


class ProductLookup:
    """Resolves a scanned barcode to a product through `GET /api/products`."""

    def __init__(self, client: ApiClient):
        self._client = client

    async def find_by_barcode(self, code: str) -> Optional[Product]:
        """
        Return the product carrying `code`, or None when no product does.

        A 404 is the normal "unknown barcode" answer and is not an error.
        Anything else that is not a 200 raises `LookupFailed`. No retries.
        """
        try:
            response = await self._client.send("GET", "/api/products", params={"barcode": code})
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning("Barcode lookup for %s failed: %s", code, exc)
            raise LookupFailed(f"Could not reach the product service: {exc}") from exc

        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise LookupFailed(f"Error searching product (HTTP {response.status_code})")
        try:
            return Product.model_validate(response.json())
        except ValueError as exc:
            raise LookupFailed(f"Unexpected product payload: {exc}") from exc


class CatalogClient:
    """
    The follow-up calls of the intake flow: creating a product for an unknown
    barcode, linking the barcode to an existing product, and receiving stock.

    Failures raise `ApiError` (or `httpx.HTTPError` for transport problems).
    """

    def __init__(self, client: ApiClient):
        self._client = client

    async def create_product(
        self,
        *,
        name: str,
        sku: str,
        barcode: Optional[str] = None,
        description: Optional[str] = None,
        min_stock: int = 0,
        price=None,
        requires_serial: bool = False,
    ) -> Product:
        payload = {
            "name": name,
            "sku": sku,
            "barcode": barcode,
            "description": description,
            "min_stock": min_stock,
            "price": str(price) if price is not None else None,
            "requires_serial": requires_serial,
        }
        body = await self._client.post("/api/products", json=payload, expected=(201,))
        return Product.model_validate(body)

    async def association_candidates(self, search: Optional[str] = None) -> List[Product]:
        """Active products that have no barcode yet."""
        params = {"unbarcoded": "true"}
        if search:
            params["search"] = search
        body = await self._client.get("/api/products", params=params)
        return [Product.model_validate(item) for item in body]

    async def associate_barcode(self, product_id: int, barcode: str) -> Product:
        body = await self._client.put(
            f"/api/products/{product_id}/barcode",
            json={"barcode": barcode},
        )
        return Product.model_validate(body)

    async def enter_stock(self, entry: StockEntry) -> dict:
        return await self._client.post(
            "/api/stock-entry",
            json=entry.model_dump(mode="json"),
            expected=(201,),
        )


__all__ = ["ApiError", "CatalogClient", "LookupFailed", "ProductLookup"]
