"""
Core data types for the news feed.

This module defines the fundamental data structures shared by the
aggregation and engagement layers:
- RawArticle: One record as returned by the upstream feed
- Article: Canonical catalog entry keyed by a stable id
- LikeRecord: Users currently liking an article
- Comment: A user comment with its own like set
- User: Registered account
- ToggleResult / ArticlePage: Values returned to the boundary
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class RawArticle:
    """Represents one upstream record before identity resolution.

    Attributes:
        title: The article headline
        description: Short description from the feed, used as summary
        image_url: Optional cover image URL
        url: Optional canonical URL of the original article
        published_at: Optional ISO 8601 published timestamp
        source_name: Publication name (e.g., "Reuters")
    """
    title: str | None = None
    description: str | None = None
    image_url: str | None = None
    url: str | None = None
    published_at: str | None = None
    source_name: str | None = None


@dataclass
class Article:
    """Canonical catalog entry.

    Attributes:
        id: Stable id, derived from the URL or synthetic when no URL exists
        title: Headline
        summary: Short description
        cover: Cover image URL
        url: Canonical source URL
        source: Publication name
        published_at: ISO 8601 timestamp as received from the feed
        categories: Every frontend category this article was sighted under
        primary_category: Category of the most recent sighting
    """
    id: str
    title: str | None = None
    summary: str | None = None
    cover: str | None = None
    url: str | None = None
    source: str = ""
    published_at: str | None = None
    categories: set[str] = field(default_factory=set)
    primary_category: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "summary": self.summary,
            "cover": self.cover,
            "publishedAt": self.published_at,
            "url": self.url,
            "source": self.source,
            "categories": sorted(self.categories),
            "primaryCategory": self.primary_category,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Article":
        categories = data.get("categories") or []
        if not categories and data.get("category"):
            categories = [data["category"]]
        return cls(
            id=data["id"],
            title=data.get("title"),
            summary=data.get("summary"),
            cover=data.get("cover"),
            url=data.get("url"),
            source=data.get("source") or "",
            published_at=data.get("publishedAt"),
            categories=set(categories),
            primary_category=data.get("primaryCategory") or data.get("category"),
        )


@dataclass
class LikeRecord:
    """Users currently liking one article. count is always len(users)."""
    article_id: str
    users: set[str] = field(default_factory=set)

    @property
    def count(self) -> int:
        return len(self.users)


@dataclass
class Comment:
    """A comment under an article.

    Attributes:
        id: sha1 of article id, username, created_at and text; empty until a
            legacy record is upgraded
        article_id: Owning article
        username: Author
        text: Trimmed comment text
        created_at: ISO 8601 UTC timestamp with milliseconds
        liked_by: Users currently liking the comment
        legacy_likes: Like count carried over from records that predate liked_by
    """
    id: str
    article_id: str
    username: str
    text: str
    created_at: str
    liked_by: set[str] = field(default_factory=set)
    legacy_likes: int = 0

    @property
    def likes(self) -> int:
        return self.legacy_likes + len(self.liked_by)

    def view(self, viewer: str | None) -> dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "text": self.text,
            "createdAt": self.created_at,
            "likes": self.likes,
            "liked": bool(viewer) and viewer in self.liked_by,
        }


@dataclass
class User:
    username: str
    password: str


@dataclass
class ToggleResult:
    """Outcome of a like toggle."""
    count: int
    liked: bool

    def to_dict(self) -> dict[str, Any]:
        return {"likes": self.count, "liked": self.liked}


@dataclass
class ArticlePage:
    """One page of a listing.

    Attributes:
        items: Serialized items for the requested page
        total_results: Size of the full filtered set
        degraded: True when every upstream fetch failed and items are placeholders
        upserted: Number of catalog upserts performed while building the page
    """
    items: list[dict[str, Any]] = field(default_factory=list)
    total_results: int = 0
    degraded: bool = False
    upserted: int = 0

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"items": self.items, "totalResults": self.total_results}
        if self.degraded:
            payload["degraded"] = True
        return payload
