"""
Request-level operations over the news feed repositories.

NewsService owns the catalog, engagement store and user registry for the
lifetime of the process, and flushes them to the JSON store after every
mutating operation. A failed flush is logged and does not fail the request:
the in-memory state stays authoritative until the next successful flush.

Repository methods contain no await points, so within one event loop each
toggle or upsert runs to completion before another request can observe it.
"""

from __future__ import annotations

import logging
from typing import Any

from .aggregator import AggregationEngine
from .config import AppConfig
from .core.catalog import ArticleCatalog
from .core.engagement import EngagementStore
from .core.identity import IdentityResolver
from .core.users import UserRegistry
from .errors import AuthError, NotFoundError, PersistenceError
from .fetch.feed_source import FeedSource, NewsApiFeedSource, fetch_deadline
from .logging_utils import log_event
from .storage import JsonStore


logger = logging.getLogger("news_feed.service")


CATEGORY_NAMES = {
    "tech": "Technology",
    "business": "Business",
    "world": "World",
    "sports": "Sports",
    "news": "All news",
}


class NewsService:
    def __init__(
        self,
        cfg: AppConfig,
        source: FeedSource,
        store: JsonStore,
        catalog: ArticleCatalog | None = None,
        engagement: EngagementStore | None = None,
        users: UserRegistry | None = None,
    ):
        self.cfg = cfg
        self.source = source
        self.store = store
        self.catalog = catalog if catalog is not None else ArticleCatalog(cfg.aggregation.aggregate_category)
        self.engagement = (
            engagement
            if engagement is not None
            else EngagementStore(max_comment_length=cfg.engagement.max_comment_length)
        )
        self.users = users if users is not None else UserRegistry()
        self.engine = AggregationEngine(
            source,
            self.catalog,
            self.engagement,
            cfg=cfg.aggregation,
            dedup_cfg=cfg.dedup,
            resolver=IdentityResolver(),
            fetch_timeout=fetch_deadline(cfg.upstream),
        )

    @classmethod
    def from_config(cls, cfg: AppConfig, source: FeedSource | None = None) -> "NewsService":
        """Build a service with state restored from the configured data file."""
        store = JsonStore(
            cfg.storage.data_file,
            max_comment_length=cfg.engagement.max_comment_length,
            aggregate_category=cfg.aggregation.aggregate_category,
        )
        snapshot = store.load()
        return cls(
            cfg,
            source if source is not None else NewsApiFeedSource(cfg.upstream),
            store,
            catalog=snapshot.catalog,
            engagement=snapshot.engagement,
            users=snapshot.users,
        )

    # Listing

    async def list_articles(
        self, category: str, query: str = "", page: int = 1, page_size: int | None = None
    ) -> dict[str, Any]:
        result = await self.engine.list_articles(category, query, page, page_size)
        if result.upserted:
            self.flush()
        return result.to_dict()

    async def trending(self) -> dict[str, Any]:
        result = await self.engine.trending()
        if result.upserted:
            self.flush()
        return {"items": result.items}

    def categories(self) -> dict[str, Any]:
        ids = list(self.cfg.aggregation.category_map) + [self.cfg.aggregation.aggregate_category]
        return {"categories": [{"id": cid, "name": CATEGORY_NAMES.get(cid, cid.title())} for cid in ids]}

    def get_article(self, article_id: str, viewer: str | None = None) -> dict[str, Any]:
        article = self.catalog.get(article_id)
        if article is None:
            raise NotFoundError("Article not found")
        payload = article.to_dict()
        payload["likes"] = self.engagement.like_count(article_id)
        payload["liked"] = bool(viewer) and self.engagement.has_liked(article_id, viewer)
        return payload

    # Engagement

    def toggle_like(self, article_id: str, username: str | None) -> dict[str, Any]:
        username = _require_user(username)
        result = self.engagement.toggle_article_like(article_id, username)
        self.flush()
        return result.to_dict()

    def list_comments(self, article_id: str, viewer: str | None = None) -> dict[str, Any]:
        views, upgraded = self.engagement.list_comments(article_id, viewer or None)
        if upgraded:
            self.flush()
        return {"items": views}

    def add_comment(self, article_id: str, username: str | None, text: str | None) -> dict[str, Any]:
        username = _require_user(username)
        comment = self.engagement.add_comment(article_id, username, text)
        self.flush()
        return {"ok": True, "comment": comment.view(username)}

    def toggle_comment_like(self, article_id: str, comment_id: str, username: str | None) -> dict[str, Any]:
        username = _require_user(username)
        result = self.engagement.toggle_comment_like(article_id, comment_id, username)
        self.flush()
        return result.to_dict()

    # Accounts

    def register(self, username: str | None, password: str | None) -> dict[str, Any]:
        user = self.users.register(username, password)
        self.flush()
        log_event(logger, "User registered", event="user_registered", username=user.username)
        return {"message": "Registered", "username": user.username}

    def login(self, username: str | None, password: str | None) -> dict[str, Any]:
        user = self.users.authenticate(username, password)
        return {"message": "Signed in", "username": user.username}

    # Persistence

    def flush(self) -> bool:
        """Write all state to disk; returns False when the write failed."""
        try:
            self.store.flush(self.catalog, self.engagement, self.users)
        except PersistenceError as exc:
            log_event(
                logger,
                "Flush failed",
                level=logging.ERROR,
                event="flush_failed",
                path=str(self.store.path),
                error=exc.message,
            )
            return False
        return True

    def stats(self) -> dict[str, int]:
        return {
            "users": len(self.users),
            "articles": len(self.catalog),
            "liked_articles": self.engagement.liked_article_count(),
            "comments": self.engagement.comment_count(),
        }

    async def aclose(self) -> None:
        await self.source.aclose()


def _require_user(username: str | None) -> str:
    if not username or not username.strip():
        raise AuthError("Please sign in first")
    return username
