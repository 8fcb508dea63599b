"""
Upstream headline sources.

FeedSource is the only seam between the aggregation engine and the network.
NewsApiFeedSource queries the NewsAPI ``top-headlines`` endpoint with
httpx, retrying transient failures with a linear backoff.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import asyncio
from typing import Any

import httpx

from ..config import UpstreamConfig, get_api_key
from ..core.types import RawArticle
from ..errors import UpstreamError


class FeedSource(ABC):
    """Abstract base class for headline sources."""

    @abstractmethod
    async def fetch_headlines(self, category: str, query: str, page_size: int) -> list[RawArticle]:
        """Fetch current headlines for one upstream category.

        Args:
            category: Upstream category name (e.g., "technology")
            query: Free-text search term, may be empty
            page_size: Maximum number of records to request

        Returns:
            Raw records in upstream order

        Raises:
            UpstreamError: On network failure, timeout or a non-2xx response
        """
        raise NotImplementedError

    async def aclose(self) -> None:
        return None


class NewsApiFeedSource(FeedSource):
    def __init__(
        self,
        cfg: UpstreamConfig,
        api_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.cfg = cfg
        self.api_key = api_key or get_api_key(cfg)
        self._client = httpx.AsyncClient(
            base_url=cfg.base_url,
            timeout=cfg.timeout_seconds,
            headers={"User-Agent": cfg.user_agent},
            trust_env=cfg.trust_env,
            transport=transport,
        )

    async def fetch_headlines(self, category: str, query: str, page_size: int) -> list[RawArticle]:
        if not self.api_key:
            raise UpstreamError("News API key is not configured")

        params = {
            "category": category,
            "q": query or "",
            "country": self.cfg.country,
            "pageSize": str(page_size),
            "apiKey": self.api_key,
        }
        data = await self._get_json("/top-headlines", params)
        articles = data.get("articles")
        if articles is None:
            return []
        if not isinstance(articles, list):
            raise UpstreamError(f"Malformed response: articles is {type(articles).__name__}")
        return [_parse_article(item) for item in articles if isinstance(item, dict)]

    async def _get_json(self, path: str, params: dict[str, str]) -> dict[str, Any]:
        last_error: str | None = None

        for attempt in range(self.cfg.retries + 1):
            try:
                resp = await self._client.get(path, params=params)
            except httpx.HTTPError as exc:
                last_error = f"{type(exc).__name__}: {exc}"
                if attempt < self.cfg.retries:
                    await asyncio.sleep(_backoff(attempt))
                continue

            try:
                data = resp.json()
            except ValueError:
                data = {}
            if resp.is_success:
                return data if isinstance(data, dict) else {}

            message = "Unknown error"
            if isinstance(data, dict):
                message = data.get("message") or data.get("error") or message
            last_error = f"HTTP {resp.status_code}: {message}"
            # client errors (bad key, rate limit) will not improve on retry
            if resp.status_code < 500:
                break
            if attempt < self.cfg.retries:
                await asyncio.sleep(_backoff(attempt))

        raise UpstreamError(last_error or "Upstream request failed")

    async def aclose(self) -> None:
        await self._client.aclose()


def fetch_deadline(cfg: UpstreamConfig) -> float:
    """Upper bound for one fetch_headlines call, covering every retry and its backoff."""
    attempts = cfg.retries + 1
    return cfg.timeout_seconds * attempts + sum(_backoff(n) for n in range(cfg.retries))


def _backoff(attempt: int) -> float:
    return 0.5 * (attempt + 1)


def _parse_article(item: dict[str, Any]) -> RawArticle:
    source = item.get("source") or {}
    return RawArticle(
        title=_text(item.get("title")),
        description=_text(item.get("description")),
        image_url=_text(item.get("urlToImage")),
        url=_text(item.get("url")),
        published_at=_text(item.get("publishedAt")),
        source_name=_text(source.get("name")) if isinstance(source, dict) else None,
    )


def _text(value: Any) -> str | None:
    if value is None or isinstance(value, (dict, list)):
        return None
    return value if isinstance(value, str) else str(value)
