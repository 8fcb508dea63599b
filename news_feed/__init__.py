"""
News Feed - news aggregation backend with likes and comments.

This package proxies a headline API, keeps a catalog of every article it
has seen under stable URL-derived ids, and persists users, likes and
comments to a single JSON file.

Main entry point is the CLI via `news-feed serve` command.

Example:
    $ news-feed serve --config config.yaml --port 3000
"""

__all__ = ["__version__", "ArticleCatalog", "EngagementStore", "IdentityResolver", "AggregationEngine"]
__version__ = "0.1.0"

from .core.catalog import ArticleCatalog
from .core.engagement import EngagementStore
from .core.identity import IdentityResolver
from .aggregator import AggregationEngine
