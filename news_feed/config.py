"""
Configuration management using YAML files and dataclasses.

This module defines all configuration dataclasses and provides loading
from YAML files with defaults. Configuration sections:
- UpstreamConfig: NewsAPI client settings
- AggregationConfig: Category mapping, page sizes and degraded mode
- DedupConfig: Aggregate-view deduplication settings
- EngagementConfig: Comment limits
- StorageConfig: Location of the JSON data file
- LoggingConfig: Logging behavior
- ServerConfig: HTTP bind address
- AppConfig: Root configuration container
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
import os
from typing import Any

import yaml


@dataclass
class UpstreamConfig:
    """Configuration for the upstream news API.

    Attributes:
        base_url: NewsAPI v2 base URL
        api_key: Optional inline API key (overrides env var)
        api_key_env: Environment variable name containing the API key
        country: Country code passed to top-headlines
        timeout_seconds: Per-request timeout; a whole fetch is bounded by fetch_deadline()
        retries: Number of retry attempts for failed requests
        trust_env: Whether to respect system proxy settings
        user_agent: HTTP User-Agent header string
    """

    base_url: str = "https://newsapi.org/v2"
    api_key: str | None = None
    api_key_env: str = "NEWS_API_KEY"
    country: str = "us"
    timeout_seconds: float = 10.0
    retries: int = 1
    trust_env: bool = True
    user_agent: str = "news-feed/0.1"


@dataclass
class AggregationConfig:
    """Configuration for listing and trending.

    Attributes:
        aggregate_category: Frontend id of the catch-all pseudo-category
        category_map: Frontend category id -> upstream category name
        aggregate_page_size: Records requested per upstream category when fanning out
        single_page_size: Records requested for a single-category listing
        trending_page_size: Records requested for the trending panel
        trending_category: Frontend category the trending panel is sourced from
        default_page_size: Page size used when the caller gives none
        max_page_size: Upper bound for a requested page size
        placeholder_count: Placeholder items returned when every fetch fails
        trending_placeholder_count: Placeholder items for a failed trending fetch
    """

    aggregate_category: str = "news"
    category_map: dict[str, str] = field(
        default_factory=lambda: {
            "tech": "technology",
            "business": "business",
            "world": "general",
            "sports": "sports",
        }
    )
    aggregate_page_size: int = 25
    single_page_size: int = 50
    trending_page_size: int = 10
    trending_category: str = "tech"
    default_page_size: int = 10
    max_page_size: int = 50
    placeholder_count: int = 2
    trending_placeholder_count: int = 3


@dataclass
class DedupConfig:
    """Configuration for aggregate-view deduplication.

    Attributes:
        title_similarity_enabled: Also drop records whose titles nearly match a kept one
        title_similarity_threshold: Fuzzy match threshold (0-100) for title similarity
    """

    title_similarity_enabled: bool = False
    title_similarity_threshold: int = 92


@dataclass
class EngagementConfig:
    """Configuration for likes and comments.

    Attributes:
        max_comment_length: Longest accepted comment, counted after trimming
    """

    max_comment_length: int = 300


@dataclass
class StorageConfig:
    """Configuration for durable storage.

    Attributes:
        data_file: Path of the JSON file holding users, likes, articles and comments
    """

    data_file: str = "data.json"


@dataclass
class LoggingConfig:
    """Configuration for logging behavior.

    Attributes:
        level: Logging level ("DEBUG", "INFO", "WARNING", "ERROR")
        console: Whether to log to console
        file: Whether to log to file
        format: Log file format ("jsonl" or "plain")
        filename: Name of the main log file
        directory: Directory for the log file
    """

    level: str = "INFO"
    console: bool = True
    file: bool = False
    format: str = "jsonl"
    filename: str = "server.jsonl"
    directory: str = "logs"


@dataclass
class ServerConfig:
    """HTTP server bind settings."""

    host: str = "127.0.0.1"
    port: int = 3000


@dataclass
class AppConfig:
    """Root configuration container aggregating all config sections."""

    upstream: UpstreamConfig = field(default_factory=UpstreamConfig)
    aggregation: AggregationConfig = field(default_factory=AggregationConfig)
    dedup: DedupConfig = field(default_factory=DedupConfig)
    engagement: EngagementConfig = field(default_factory=EngagementConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    server: ServerConfig = field(default_factory=ServerConfig)


def load_config(path: str | None) -> AppConfig:
    """Load configuration from a YAML file with defaults."""
    if not path:
        return AppConfig()

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    return _merge_config(AppConfig(), raw)


def _merge_config(base: AppConfig, raw: dict[str, Any]) -> AppConfig:
    """Merge raw YAML config into base AppConfig."""
    data = asdict(base)
    for key, value in raw.items():
        if key not in data:
            continue
        if isinstance(value, dict) and isinstance(data[key], dict):
            data[key].update(value)
        else:
            data[key] = value
    return _fromdict(data)


def _fromdict(data: dict[str, Any]) -> AppConfig:
    """Reconstruct AppConfig from nested dictionary."""
    return AppConfig(
        upstream=UpstreamConfig(**data["upstream"]),
        aggregation=AggregationConfig(**data["aggregation"]),
        dedup=DedupConfig(**data["dedup"]),
        engagement=EngagementConfig(**data["engagement"]),
        storage=StorageConfig(**data["storage"]),
        logging=LoggingConfig(**data["logging"]),
        server=ServerConfig(**data.get("server", {})),
    )


def get_api_key(cfg: UpstreamConfig) -> str | None:
    """Get API key from inline config or environment variable."""
    if cfg.api_key:
        return cfg.api_key
    return os.getenv(cfg.api_key_env)
