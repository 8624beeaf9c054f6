from __future__ import annotations

import logging
import os
from typing import Any, Iterable, Optional

import httpx

logger = logging.getLogger(__name__)

API_BASE_URL = os.getenv("WMS_API_URL", "http://localhost:5000")
HTTP_TIMEOUT_SECONDS = float(os.getenv("WMS_HTTP_TIMEOUT", "8.0"))


class ApiError(Exception):
    """The API answered with a status code the caller did not expect."""

    def __init__(self, status_code: int, detail: Any):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"HTTP {status_code}: {detail}")


def _error_detail(response: httpx.Response) -> Any:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict) and "detail" in body:
        return body["detail"]
    return body


class ApiClient:
    """
    Thin wrapper around `httpx.AsyncClient` for the WMS API.

    Holds the bearer token of the signed-in user and turns unexpected
    status codes into `ApiError`. Transport failures (connection refused,
    timeouts) propagate as `httpx.HTTPError`.
    """

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        *,
        timeout: float = HTTP_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        token: Optional[str] = None,
    ):
        self._http = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)
        self.token = token

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def _headers(self) -> dict:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    async def send(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Issue a request and return the raw response whatever its status."""
        headers = {**self._headers(), **kwargs.pop("headers", {})}
        response = await self._http.request(method, url, headers=headers, **kwargs)
        logger.debug("%s %s -> %s", method, url, response.status_code)
        return response

    async def request(
        self,
        method: str,
        url: str,
        *,
        expected: Iterable[int] = (200,),
        **kwargs,
    ) -> Any:
        """Issue a request and return the decoded JSON body, or None for 204."""
        response = await self.send(method, url, **kwargs)
        if response.status_code not in tuple(expected):
            raise ApiError(response.status_code, _error_detail(response))
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    async def get(self, url: str, **kwargs) -> Any:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs) -> Any:
        kwargs.setdefault("expected", (200, 201))
        return await self.request("POST", url, **kwargs)

    async def put(self, url: str, **kwargs) -> Any:
        return await self.request("PUT", url, **kwargs)
