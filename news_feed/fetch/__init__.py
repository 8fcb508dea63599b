"""
Upstream headline fetching.

This package holds the FeedSource abstraction and its NewsAPI client.
"""

from .feed_source import FeedSource, NewsApiFeedSource

__all__ = [
    "FeedSource",
    "NewsApiFeedSource",
]
