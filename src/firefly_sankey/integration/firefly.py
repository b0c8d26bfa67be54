import asyncio
import os
from collections.abc import AsyncIterator
from typing import Any

import httpx

from firefly_sankey.logger import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 60.0
DEFAULT_PAGE_SIZE = 50

Page = tuple[list[dict[str, Any]], dict[str, Any]]


class FireflyConfigError(RuntimeError):
    """Raised when the Firefly III URL or token is not configured."""


class FireflyClient:
    """
    Read-only Firefly III API client.

    ``base_url`` and ``token`` fall back to ``FIREFLY_URL`` and
    ``FIREFLY_TOKEN``. The ``httpx.AsyncClient`` is created on first use
    unless one is passed in.
    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        url = base_url or os.getenv("FIREFLY_URL")
        self.base_url = url.rstrip("/") if url else None
        self.token = token or os.getenv("FIREFLY_TOKEN")
        self.timeout = timeout
        self._client = client
        self._client_lock = asyncio.Lock()

    @property
    def configured(self) -> bool:
        return bool(self.base_url and self.token)

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/json",
        }

    async def aclose(self) -> None:
        client, self._client = self._client, None
        if client is not None and not client.is_closed:
            await client.aclose()

    async def _http(self) -> httpx.AsyncClient:
        async with self._client_lock:
            if self._client is None or self._client.is_closed:
                self._client = httpx.AsyncClient(timeout=self.timeout)
            return self._client

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        if not self.configured:
            raise FireflyConfigError("Firefly III base URL and API token are required.")

        http = await self._http()
        response = await http.get(f"{self.base_url}/api{path}", headers=self.headers, params=params)
        response.raise_for_status()
        return response.json()

    async def get_about(self) -> dict[str, Any]:
        payload = await self._get("/v1/about")
        return payload.get("data", {})

    async def get_about_user(self) -> dict[str, Any]:
        payload = await self._get("/v1/about/user")
        return payload.get("data", {})

    async def list_transactions(
        self,
        start: str | None = None,
        end: str | None = None,
        type: str = "all",
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> dict[str, Any]:
        """One page of transaction groups plus its pagination block."""
        params: dict[str, Any] = {"type": type, "page": page, "limit": limit}
        if start:
            params["start"] = start
        if end:
            params["end"] = end

        payload = await self._get("/v1/transactions", params=params)
        return {
            "data": payload.get("data", []),
            "meta": payload.get("meta", {}).get("pagination", {}),
        }

    async def yield_transactions(
        self,
        start: str | None = None,
        end: str | None = None,
        limit_per_page: int = DEFAULT_PAGE_SIZE,
    ) -> AsyncIterator[Page]:
        """Async generator that yields pages of transactions and metadata."""
        page, total_pages = 1, 1
        while page <= total_pages:
            result = await self.list_transactions(start=start, end=end, page=page, limit=limit_per_page)
            transactions, meta = result["data"], result["meta"]
            total_pages = meta.get("total_pages", 1)
            logger.debug(
                "[FIREFLY] Page %s/%s: %s transaction group(s).", page, total_pages, len(transactions)
            )
            if not transactions:
                return
            yield transactions, meta
            page += 1

    async def get_all_transactions(
        self,
        start: str | None = None,
        end: str | None = None,
        limit_per_page: int = DEFAULT_PAGE_SIZE,
    ) -> list[dict[str, Any]]:
        collected: list[dict[str, Any]] = []
        async for transactions, meta in self.yield_transactions(start, end, limit_per_page):
            collected.extend(transactions)
            logger.info(
                "[FIREFLY] Fetched %s/%s transaction groups.",
                len(collected),
                meta.get("total", len(collected)),
            )
        return collected
