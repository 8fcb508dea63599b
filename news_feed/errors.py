"""
Error kinds raised by the news feed core.

Every error carries a machine-readable ``kind`` and the HTTP status the
boundary should answer with, so handlers never need to inspect messages.
"""

from __future__ import annotations

from typing import Any


class NewsFeedError(Exception):
    """Base class for all errors surfaced to callers."""

    kind = "error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message, "kind": self.kind}


class UpstreamError(NewsFeedError):
    """Feed unreachable, timed out, or answered with a non-2xx status."""

    kind = "upstream"
    status_code = 502


class ValidationError(NewsFeedError):
    """Rejected input: empty or oversized comment, missing credentials, bad category."""

    kind = "validation"
    status_code = 400


class NotFoundError(NewsFeedError):
    """Unknown article id or comment id."""

    kind = "not_found"
    status_code = 404


class AuthError(NewsFeedError):
    """Action requires a signed-in user, or credentials did not match."""

    kind = "auth"
    status_code = 401


class PersistenceError(NewsFeedError):
    """Durable write failed."""

    kind = "persistence"
    status_code = 500
