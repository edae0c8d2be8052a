"""Paginated reader of closed Polymarket markets from the Gamma API."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

import httpx

from polyredeem.core.logging import get_logger

log = get_logger(__name__)

GAMMA_API_URL = "https://gamma-api.polymarket.com"


@dataclass(frozen=True)
class ListedMarket:
    """A market as returned by the listing."""

    condition_id: str
    question: str
    market_id: str = ""


class MarketListing:
    """Walk ``/markets?closed=true`` page by page.

    Stops after ``max_markets`` identifiers, on an empty or short page.
    """

    def __init__(
        self,
        gamma_url: str = GAMMA_API_URL,
        page_size: int = 100,
        rate_limit_rps: float = 2.0,
        timeout: float = 15.0,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._gamma_url = gamma_url.rstrip("/")
        self._page_size = page_size
        self._min_interval = 1.0 / rate_limit_rps
        self._last_request_time = 0.0
        self._timeout = timeout
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._gamma_url,
                timeout=httpx.Timeout(self._timeout),
            )
        return self._client

    async def _rate_limit(self) -> None:
        now = asyncio.get_running_loop().time()
        elapsed = now - self._last_request_time
        if elapsed < self._min_interval:
            await asyncio.sleep(self._min_interval - elapsed)
        self._last_request_time = asyncio.get_running_loop().time()

    async def fetch_page(self, offset: int, limit: int) -> list[dict[str, Any]]:
        await self._rate_limit()
        client = await self._get_client()
        resp = await client.get(
            "/markets",
            params={
                "closed": "true",
                "limit": limit,
                "offset": offset,
            },
        )
        resp.raise_for_status()
        data = resp.json()
        return data if isinstance(data, list) else []

    async def closed_markets(self, max_markets: int) -> list[ListedMarket]:
        """Up to ``max_markets`` closed markets, in page order, deduplicated."""
        if max_markets <= 0:
            msg = f"max_markets must be > 0, got {max_markets}"
            raise ValueError(msg)

        results: list[ListedMarket] = []
        seen: set[str] = set()
        offset = 0
        while len(results) < max_markets:
            limit = min(self._page_size, max_markets - len(results))
            page = await self.fetch_page(offset, limit)
            for m in page:
                condition_id = m.get("conditionId") or m.get("condition_id") or ""
                if not condition_id or condition_id in seen:
                    continue
                seen.add(condition_id)
                results.append(ListedMarket(
                    condition_id=condition_id,
                    question=m.get("question", ""),
                    market_id=str(m.get("id", "")),
                ))
                if len(results) >= max_markets:
                    break
            if len(page) < limit:
                break
            offset += len(page)

        log.info("market_listing.fetched", count=len(results), max_markets=max_markets)
        return results

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
