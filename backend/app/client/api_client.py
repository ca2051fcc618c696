"""HTTP client for the report status surface."""

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class ReportStatusClient:
    """
    Reads report status and records over the HTTP API.

    Args:
        base_url: API root, e.g. ``http://localhost:8000/api``
        token: Bearer token sent with every request
        http_client: Pre-configured httpx client (tests pass one bound to an
            ASGI transport); when given, ``base_url`` is used as a path prefix
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        base_url: str = "",
        token: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._client = http_client
        self._owns_client = http_client is None

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    async def _get(self, path: str) -> dict[str, Any]:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        response = await self._client.get(f"{self.base_url}{path}", headers=self._headers())
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected response payload from {path}")
        return data

    async def get_status(self, report_id: str) -> dict[str, Any]:
        """Return ``{"status": ..., "error": ...}`` for a report."""
        return await self._get(f"/reports/{report_id}/status")

    async def get_report(self, report_id: str) -> dict[str, Any]:
        """Return the full report record; fails unless the report is completed."""
        envelope = await self._get(f"/reports/{report_id}")
        if envelope.get("data") is None:
            raise ValueError(f"Report {report_id} is {envelope.get('status')}, no record available")
        return envelope["data"]

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "ReportStatusClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
