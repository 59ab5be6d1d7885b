"""
HTTP transport for the Weaviate client.

HttpTransport is the abstraction every store component depends on
(Dependency Inversion); HttpxTransport is the production implementation
on top of httpx.AsyncClient. Tests substitute an in-memory transport that
emulates the store's endpoints.

Non-2xx statuses are NOT raised here: some callers (batch delete) need to
inspect the status and choose a fallback. Only network-level failures are
raised, as TransportError with status_code=None.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import httpx

from mini_rag.core.errors import TransportError

logger = logging.getLogger(__name__)


@dataclass
class TransportResponse:
    """Status plus decoded JSON body (None when the body is not JSON)."""

    status_code: int
    body: Any = None
    text: str = ""
    url: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def raise_for_status(self, operation: str) -> None:
        """Raise TransportError when the status is not 2xx."""
        if not self.ok:
            raise TransportError(
                f"{operation} failed with HTTP {self.status_code}",
                status_code=self.status_code,
                url=self.url,
                details={"body": self.text[:500]},
            )


class HttpTransport(ABC):
    """Abstract interface for the HTTP layer."""

    @abstractmethod
    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
    ) -> TransportResponse:
        """Send one request; path may carry an already-encoded query string."""

    async def get(self, path: str) -> TransportResponse:
        return await self.request("GET", path)

    async def post(self, path: str, json: Any = None) -> TransportResponse:
        return await self.request("POST", path, json=json)

    async def delete(self, path: str) -> TransportResponse:
        return await self.request("DELETE", path)

    async def close(self) -> None:
        """Release underlying resources."""


class HttpxTransport(HttpTransport):
    """httpx implementation of the transport."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            base_url=base_url,
            headers={"Content-Type": "application/json"},
            timeout=timeout,
        )

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
    ) -> TransportResponse:
        try:
            response = await self.client.request(method, path, json=json)
        except httpx.RequestError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise TransportError(
                f"Network error calling {method} {path}: {e}",
                url=path,
            ) from e

        try:
            body = response.json() if response.content else None
        except ValueError:
            body = None

        logger.debug("%s %s -> %d", method, path, response.status_code)
        return TransportResponse(
            status_code=response.status_code,
            body=body,
            text=response.text,
            url=str(response.request.url),
        )

    async def close(self) -> None:
        """Close the HTTP client if this transport created it."""
        if self._owns_client:
            await self.client.aclose()
