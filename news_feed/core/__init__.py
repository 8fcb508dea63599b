"""
Core domain models and business logic.

This package contains the article identity, catalog and engagement
repositories, independent of how articles are fetched or served.
"""

from .types import Article, ArticlePage, Comment, LikeRecord, RawArticle, ToggleResult, User
from .identity import IdentityResolver, url_id
from .catalog import ArticleCatalog, MERGE_RULES, fields_from_raw
from .engagement import EngagementStore, comment_id
from .users import UserRegistry
from .dedup import dedup_by_url, sort_newest_first

__all__ = [
    "Article",
    "ArticlePage",
    "Comment",
    "LikeRecord",
    "RawArticle",
    "ToggleResult",
    "User",
    "IdentityResolver",
    "url_id",
    "ArticleCatalog",
    "MERGE_RULES",
    "fields_from_raw",
    "EngagementStore",
    "comment_id",
    "UserRegistry",
    "dedup_by_url",
    "sort_newest_first",
]
