"""
Listing and trending orchestration.

The engine coordinates one request:
1. Fetch the needed upstream categories (concurrently for the aggregate view)
2. Resolve ids and upsert every sighting into the catalog
3. Deduplicate and sort (aggregate view) or filter by membership (single view)
4. Paginate and join like counts from the engagement store

Upstream failures never escape: if every fetch fails the caller gets a
page of placeholder items marked ``degraded``.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
import logging
from typing import Any

from .config import AggregationConfig, DedupConfig
from .core.catalog import ArticleCatalog, fields_from_raw
from .core.dedup import dedup_by_url, sort_newest_first
from .core.engagement import EngagementStore, utc_timestamp
from .core.identity import IdentityResolver
from .core.types import Article, ArticlePage, RawArticle
from .errors import UpstreamError, ValidationError
from .fetch.feed_source import FeedSource
from .logging_utils import log_event


logger = logging.getLogger("news_feed.aggregator")


@dataclass
class FetchOutcome:
    """Result of fetching one upstream category.

    Attributes:
        category: Frontend category id the records are tagged with
        records: Raw records, empty on failure
        error: Error message if the fetch failed, None on success
    """
    category: str
    records: list[RawArticle]
    error: str | None = None


class AggregationEngine:
    def __init__(
        self,
        source: FeedSource,
        catalog: ArticleCatalog,
        engagement: EngagementStore,
        cfg: AggregationConfig | None = None,
        dedup_cfg: DedupConfig | None = None,
        resolver: IdentityResolver | None = None,
        fetch_timeout: float = 10.0,
    ):
        self.source = source
        self.catalog = catalog
        self.engagement = engagement
        self.cfg = cfg or AggregationConfig()
        self.dedup_cfg = dedup_cfg or DedupConfig()
        self.resolver = resolver or IdentityResolver()
        self.fetch_timeout = fetch_timeout

    @property
    def categories(self) -> list[str]:
        """Concrete frontend categories, in fan-out order."""
        return list(self.cfg.category_map)

    def is_aggregate(self, category: str) -> bool:
        return category == self.cfg.aggregate_category

    async def list_articles(
        self,
        category: str,
        query: str = "",
        page: int = 1,
        page_size: int | None = None,
    ) -> ArticlePage:
        """Build one page of a category listing.

        Args:
            category: Frontend category id, or the aggregate category
            query: Free-text search term forwarded upstream
            page: One-based page number; values below 1 are treated as 1
            page_size: Items per page, clamped to [1, max_page_size]

        Returns:
            ArticlePage with the requested slice and the filtered total

        Raises:
            ValidationError: If the category is unknown
        """
        aggregate = self.is_aggregate(category)
        if not aggregate and category not in self.cfg.category_map:
            raise ValidationError(f"Unknown category: {category}")

        page = max(1, int(page))
        page_size = self._clamp_page_size(page_size)

        if aggregate:
            outcomes = await self._fetch_many(
                self.categories, query, self.cfg.aggregate_page_size
            )
        else:
            outcomes = await self._fetch_many([category], query, self.cfg.single_page_size)

        if all(outcome.error for outcome in outcomes):
            log_event(
                logger,
                "All upstream fetches failed, serving placeholders",
                level=logging.WARNING,
                event="aggregate_degraded",
                category=category,
                errors=[outcome.error for outcome in outcomes],
            )
            return self._placeholder_page(category, self.cfg.placeholder_count)

        tagged = [(outcome.category, record) for outcome in outcomes for record in outcome.records]
        if aggregate:
            threshold = (
                self.dedup_cfg.title_similarity_threshold
                if self.dedup_cfg.title_similarity_enabled
                else None
            )
            tagged = sort_newest_first(dedup_by_url(tagged, threshold))

        items: list[dict[str, Any]] = []
        for sighted, record in tagged:
            article = self.catalog.upsert(
                self.resolver.resolve(record.url), fields_from_raw(record), sighted
            )
            if not aggregate and category not in article.categories:
                continue
            items.append(self._list_item(article, record, sighted if aggregate else category))

        start = (page - 1) * page_size
        return ArticlePage(
            items=items[start:start + page_size],
            total_results=len(items),
            upserted=len(tagged),
        )

    async def trending(self, limit: int | None = None) -> ArticlePage:
        """Headlines for the trending panel, sourced from one upstream category."""
        limit = limit or self.cfg.trending_page_size
        category = self.cfg.trending_category
        outcome = (await self._fetch_many([category], "", limit))[0]
        if outcome.error:
            log_event(
                logger,
                "Trending fetch failed, serving placeholders",
                level=logging.WARNING,
                event="trending_degraded",
                error=outcome.error,
            )
            items = [
                {"id": f"local_tr_{n}", "title": f"Sample trending story {n}", "url": "", "likes": 0}
                for n in range(1, self.cfg.trending_placeholder_count + 1)
            ]
            return ArticlePage(items=items, total_results=len(items), degraded=True)

        items = []
        for record in outcome.records[:limit]:
            article = self.catalog.upsert(
                self.resolver.resolve(record.url), fields_from_raw(record), category
            )
            items.append(
                {
                    "id": article.id,
                    "title": record.title,
                    "url": record.url,
                    "likes": self.engagement.like_count(article.id),
                }
            )
        return ArticlePage(items=items, total_results=len(items), upserted=len(items))

    async def _fetch_many(self, categories: list[str], query: str, page_size: int) -> list[FetchOutcome]:
        # every fetch is joined before the caller touches the catalog
        return list(
            await asyncio.gather(
                *(self._fetch_one(category, query, page_size) for category in categories)
            )
        )

    async def _fetch_one(self, category: str, query: str, page_size: int) -> FetchOutcome:
        upstream = self.cfg.category_map[category]
        try:
            records = await asyncio.wait_for(
                self.source.fetch_headlines(upstream, query, page_size),
                timeout=self.fetch_timeout,
            )
        except asyncio.TimeoutError:
            error = f"Timed out after {self.fetch_timeout}s"
        except UpstreamError as exc:
            error = exc.message
        else:
            return FetchOutcome(category=category, records=list(records))

        log_event(
            logger,
            "Upstream fetch failed",
            level=logging.WARNING,
            event="fetch_failed",
            category=category,
            upstream_category=upstream,
            error=error,
        )
        return FetchOutcome(category=category, records=[], error=error)

    def _list_item(self, article: Article, record: RawArticle, display_category: str) -> dict[str, Any]:
        return {
            "id": article.id,
            "title": record.title,
            "summary": record.description,
            "cover": record.image_url,
            "category": display_category,
            "publishedAt": record.published_at,
            "likes": self.engagement.like_count(article.id),
            "url": record.url,
            "source": record.source_name or "",
        }

    def _placeholder_page(self, category: str, count: int) -> ArticlePage:
        now = utc_timestamp()
        items = [
            {
                "id": self.resolver.synthetic(),
                "title": f"Sample article - {category} - {n}",
                "summary": f"Offline placeholder for the {category} category.",
                "cover": "",
                "category": category,
                "publishedAt": now,
                "likes": 0,
                "url": "",
                "source": "",
            }
            for n in range(1, count + 1)
        ]
        return ArticlePage(items=items, total_results=len(items), degraded=True)

    def _clamp_page_size(self, page_size: int | None) -> int:
        if page_size is None:
            return self.cfg.default_page_size
        return min(max(1, int(page_size)), self.cfg.max_page_size)
