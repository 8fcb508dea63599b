"""
JSON file persistence for users, likes, articles and comments.

The whole state lives in one JSON document. Writes go to a temporary file
in the same directory and are moved into place with os.replace, so a crash
mid-write leaves the previous document intact.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import json
import logging
import os
from pathlib import Path
import tempfile
from typing import Any

from .core.catalog import AGGREGATE_CATEGORY, ArticleCatalog
from .core.engagement import MAX_COMMENT_LENGTH, EngagementStore
from .core.users import UserRegistry
from .errors import PersistenceError
from .logging_utils import log_event


logger = logging.getLogger("news_feed.storage")


@dataclass
class StoreSnapshot:
    """Repositories restored from disk."""
    catalog: ArticleCatalog = field(default_factory=ArticleCatalog)
    engagement: EngagementStore = field(default_factory=EngagementStore)
    users: UserRegistry = field(default_factory=UserRegistry)


class JsonStore:
    """Reads and writes the data file.

    Attributes:
        path: Location of the JSON document
    """

    def __init__(
        self,
        path: Path | str,
        max_comment_length: int = MAX_COMMENT_LENGTH,
        aggregate_category: str = AGGREGATE_CATEGORY,
    ):
        self.path = Path(path)
        self.max_comment_length = max_comment_length
        self.aggregate_category = aggregate_category

    def load(self) -> StoreSnapshot:
        """Restore state, starting empty when the file is missing or unreadable."""
        if not self.path.exists():
            log_event(logger, "No data file, starting empty", event="store_missing", path=str(self.path))
            return self._empty()

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
            if not isinstance(raw, dict):
                raise ValueError("top-level JSON value is not an object")
            snapshot = StoreSnapshot(
                catalog=ArticleCatalog.from_persisted(
                    raw.get("articleStore"), self.aggregate_category
                ),
                engagement=EngagementStore.from_persisted(
                    raw.get("likesDB"),
                    raw.get("commentsDB"),
                    max_comment_length=self.max_comment_length,
                ),
                users=UserRegistry.from_persisted(raw.get("users")),
            )
        except (OSError, ValueError, TypeError, KeyError) as exc:
            log_event(
                logger,
                "Data file unreadable, starting empty",
                level=logging.WARNING,
                event="store_corrupt",
                path=str(self.path),
                error=f"{type(exc).__name__}: {exc}",
            )
            return self._empty()

        log_event(
            logger,
            "Data file loaded",
            event="store_loaded",
            path=str(self.path),
            users=len(snapshot.users),
            articles=len(snapshot.catalog),
            comments=snapshot.engagement.comment_count(),
        )
        return snapshot

    def flush(self, catalog: ArticleCatalog, engagement: EngagementStore, users: UserRegistry) -> None:
        """Write the full state to disk.

        Raises:
            PersistenceError: If the document could not be written
        """
        likes, comments = engagement.to_persisted()
        document: dict[str, Any] = {
            "users": users.to_persisted(),
            "likesDB": likes,
            "articleStore": catalog.to_persisted(),
            "commentsDB": comments,
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(document, handle, indent=2, ensure_ascii=False)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except (OSError, TypeError, ValueError) as exc:
            raise PersistenceError(f"Failed to write {self.path}: {exc}") from exc

    def _empty(self) -> StoreSnapshot:
        return StoreSnapshot(
            catalog=ArticleCatalog(self.aggregate_category),
            engagement=EngagementStore(max_comment_length=self.max_comment_length),
        )
