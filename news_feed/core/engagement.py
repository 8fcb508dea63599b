"""
Likes and comments with idempotent toggles.

Like sets are kept as Python sets in memory and written as sorted arrays;
to_persisted/from_persisted are the only places the two forms meet. Counts
are never stored independently of their sets: an article's like count is the
size of its user set, a comment's is its legacy baseline plus the size of its
liked-by set.
"""

from __future__ import annotations

from datetime import datetime, timezone
import hashlib
import logging
from typing import Any

from ..errors import NotFoundError, ValidationError
from ..logging_utils import log_event
from .types import Comment, LikeRecord, ToggleResult


MAX_COMMENT_LENGTH = 300

logger = logging.getLogger("news_feed.engagement")


def comment_id(article_id: str, username: str, created_at: str, text: str) -> str:
    """Return the sha1 hex digest identifying a comment."""
    payload = f"{article_id}|{username}|{created_at}|{text}"
    return hashlib.sha1(payload.encode("utf-8")).hexdigest()


def utc_timestamp() -> str:
    """ISO 8601 UTC timestamp with millisecond precision and a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class EngagementStore:
    """Owns LikeRecords and Comments keyed by article id."""

    def __init__(self, max_comment_length: int = MAX_COMMENT_LENGTH, clock=utc_timestamp):
        self.max_comment_length = max_comment_length
        self._clock = clock
        self._likes: dict[str, LikeRecord] = {}
        self._comments: dict[str, list[Comment]] = {}

    # Article likes

    def toggle_article_like(self, article_id: str, username: str) -> ToggleResult:
        record = self._likes.get(article_id)
        if record is None:
            record = LikeRecord(article_id=article_id)
            self._likes[article_id] = record

        if username in record.users:
            record.users.discard(username)
            return ToggleResult(count=record.count, liked=False)
        record.users.add(username)
        return ToggleResult(count=record.count, liked=True)

    def like_count(self, article_id: str) -> int:
        record = self._likes.get(article_id)
        return record.count if record else 0

    def has_liked(self, article_id: str, username: str) -> bool:
        record = self._likes.get(article_id)
        return bool(record) and username in record.users

    # Comments

    def add_comment(self, article_id: str, username: str, text: str | None) -> Comment:
        """Append a comment under an article.

        Raises:
            ValidationError: If the trimmed text is empty or longer than
                max_comment_length characters
        """
        text = (text or "").strip()
        if not text:
            raise ValidationError("Comment text cannot be empty")
        if len(text) > self.max_comment_length:
            raise ValidationError(
                f"Comment text exceeds {self.max_comment_length} characters"
            )

        created_at = self._clock()
        comment = Comment(
            id=comment_id(article_id, username, created_at, text),
            article_id=article_id,
            username=username,
            text=text,
            created_at=created_at,
        )
        self._comments.setdefault(article_id, []).append(comment)
        return comment

    def toggle_comment_like(self, article_id: str, target_id: str, username: str) -> ToggleResult:
        comment = self._find_comment(article_id, target_id)
        if comment is None:
            raise NotFoundError("Comment not found")

        if username in comment.liked_by:
            comment.liked_by.discard(username)
            return ToggleResult(count=comment.likes, liked=False)
        comment.liked_by.add(username)
        return ToggleResult(count=comment.likes, liked=True)

    def list_comments(self, article_id: str, viewer: str | None = None) -> tuple[list[dict[str, Any]], bool]:
        """Return comment views newest-first.

        Legacy records without an id are upgraded in place on this read.

        Returns:
            Tuple of (views, upgraded) where upgraded tells the caller a flush
            is needed to make the new ids durable
        """
        comments = self._comments.get(article_id, [])
        upgraded = False
        for comment in comments:
            if self._upgrade(comment):
                upgraded = True
        views = [comment.view(viewer) for comment in reversed(comments)]
        return views, upgraded

    def comment_count(self, article_id: str | None = None) -> int:
        if article_id is not None:
            return len(self._comments.get(article_id, []))
        return sum(len(items) for items in self._comments.values())

    def liked_article_count(self) -> int:
        return sum(1 for record in self._likes.values() if record.users)

    def _find_comment(self, article_id: str, target_id: str) -> Comment | None:
        for comment in self._comments.get(article_id, []):
            self._upgrade(comment)
            if comment.id == target_id:
                return comment
        return None

    @staticmethod
    def _upgrade(comment: Comment) -> bool:
        if comment.id:
            return False
        comment.id = comment_id(comment.article_id, comment.username, comment.created_at, comment.text)
        log_event(
            logger,
            "Legacy comment upgraded",
            event="comment_upgraded",
            article_id=comment.article_id,
            comment_id=comment.id,
            legacy_likes=comment.legacy_likes,
        )
        return True

    # Persisted form

    def to_persisted(self) -> tuple[dict[str, Any], dict[str, list[dict[str, Any]]]]:
        likes = {
            article_id: {"count": record.count, "users": sorted(record.users)}
            for article_id, record in self._likes.items()
        }
        comments = {
            article_id: [_comment_to_dict(comment) for comment in items]
            for article_id, items in self._comments.items()
        }
        return likes, comments

    @classmethod
    def from_persisted(
        cls,
        likes: dict[str, Any] | None,
        comments: dict[str, list[dict[str, Any]]] | None,
        max_comment_length: int = MAX_COMMENT_LENGTH,
    ) -> "EngagementStore":
        store = cls(max_comment_length=max_comment_length)

        for article_id, value in (likes or {}).items():
            if not isinstance(value, dict):
                continue
            users = set(value.get("users") or [])
            stored_count = value.get("count")
            if stored_count is not None and stored_count != len(users):
                log_event(
                    logger,
                    "Like count reconciled",
                    level=logging.WARNING,
                    event="like_count_reconciled",
                    article_id=article_id,
                    stored_count=stored_count,
                    actual_count=len(users),
                )
            store._likes[article_id] = LikeRecord(article_id=article_id, users=users)

        for article_id, items in (comments or {}).items():
            if not isinstance(items, list):
                continue
            store._comments[article_id] = [
                _comment_from_dict(article_id, item) for item in items if isinstance(item, dict)
            ]
        return store


def _comment_to_dict(comment: Comment) -> dict[str, Any]:
    return {
        "id": comment.id,
        "username": comment.username,
        "text": comment.text,
        "createdAt": comment.created_at,
        "likedBy": sorted(comment.liked_by),
        "likes": comment.likes,
        "legacyLikes": comment.legacy_likes,
    }


def _comment_from_dict(article_id: str, data: dict[str, Any]) -> Comment:
    liked_by = data.get("likedBy")
    if isinstance(liked_by, list):
        legacy_likes = int(data.get("legacyLikes") or 0)
    else:
        # written before liked-by sets existed: the plain count becomes the baseline
        liked_by = []
        legacy_likes = int(data.get("likes") or 0)
    return Comment(
        id=data.get("id") or "",
        article_id=article_id,
        username=data.get("username") or "",
        text=data.get("text") or "",
        created_at=data.get("createdAt") or "",
        liked_by=set(liked_by),
        legacy_likes=legacy_likes,
    )
