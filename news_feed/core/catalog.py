"""
Article catalog with upsert-merge semantics.

A new sighting of a known article enriches the stored record instead of
overwriting it. How each field merges is declared once in MERGE_RULES so
every policy can be exercised on its own.
"""

from __future__ import annotations

from typing import Any, Callable, Iterator

from .types import Article, RawArticle


AGGREGATE_CATEGORY = "news"


def prefer_existing(existing: Any, incoming: Any) -> Any:
    """Keep a populated stored value; fill an empty one from the sighting."""
    return existing if existing else incoming


def prefer_incoming(existing: Any, incoming: Any) -> Any:
    """Last write wins, unless the sighting carries nothing."""
    return incoming if incoming else existing


def union(existing: set[str], incoming: set[str]) -> set[str]:
    return set(existing) | set(incoming)


MergeRule = Callable[[Any, Any], Any]

MERGE_RULES: dict[str, MergeRule] = {
    "title": prefer_existing,
    "summary": prefer_existing,
    "cover": prefer_existing,
    "published_at": prefer_existing,
    "url": prefer_existing,
    "source": prefer_existing,
    "categories": union,
    "primary_category": prefer_incoming,
}


def fields_from_raw(raw: RawArticle) -> dict[str, Any]:
    """Map an upstream record onto Article field names."""
    return {
        "title": raw.title,
        "summary": raw.description,
        "cover": raw.image_url,
        "published_at": raw.published_at,
        "url": raw.url,
        "source": raw.source_name or "",
    }


class ArticleCatalog:
    """Owns every Article keyed by id. Articles are never deleted."""

    def __init__(self, aggregate_category: str = AGGREGATE_CATEGORY):
        self._aggregate_category = aggregate_category
        self._articles: dict[str, Article] = {}

    def upsert(self, article_id: str, incoming: dict[str, Any], sighted_category: str) -> Article:
        """Create or merge the article sighted under ``sighted_category``.

        Args:
            article_id: Resolved id of the sighting
            incoming: Article field values from the sighting (see fields_from_raw)
            sighted_category: Frontend category the record was fetched for

        Returns:
            The canonical, merged Article
        """
        sighting = dict(incoming)
        sighting["categories"] = {sighted_category, self._aggregate_category}
        sighting["primary_category"] = sighted_category

        existing = self._articles.get(article_id)
        if existing is None:
            article = Article(id=article_id)
            for name in MERGE_RULES:
                if name in sighting:
                    setattr(article, name, sighting[name])
            if article.source is None:
                article.source = ""
            self._articles[article_id] = article
            return article

        for name, rule in MERGE_RULES.items():
            if name not in sighting:
                continue
            setattr(existing, name, rule(getattr(existing, name), sighting[name]))
        return existing

    def get(self, article_id: str) -> Article | None:
        return self._articles.get(article_id)

    def __len__(self) -> int:
        return len(self._articles)

    def __iter__(self) -> Iterator[Article]:
        return iter(self._articles.values())

    def to_persisted(self) -> dict[str, dict[str, Any]]:
        return {article_id: article.to_dict() for article_id, article in self._articles.items()}

    @classmethod
    def from_persisted(
        cls, data: dict[str, dict[str, Any]] | None, aggregate_category: str = AGGREGATE_CATEGORY
    ) -> "ArticleCatalog":
        catalog = cls(aggregate_category)
        for article_id, fields in (data or {}).items():
            if not isinstance(fields, dict):
                continue
            fields = dict(fields)
            fields.setdefault("id", article_id)
            catalog._articles[article_id] = Article.from_dict(fields)
        return catalog
