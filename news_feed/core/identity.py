"""
Stable article identities.

URL-backed articles are keyed by the SHA-1 digest of their URL, so the same
URL maps to the same id across restarts. Records without a URL get a
synthetic ``local_`` id that is unique within one process only.
"""

from __future__ import annotations

import hashlib
import itertools
import time


SYNTHETIC_PREFIX = "local"


def url_id(url: str) -> str:
    """Return the 40-character SHA-1 hex digest of a URL."""
    return hashlib.sha1(url.encode("utf-8")).hexdigest()


class IdentityResolver:
    """Derives article ids from raw record URLs."""

    def __init__(self, prefix: str = SYNTHETIC_PREFIX):
        self._prefix = prefix
        self._counter = itertools.count(1)

    def resolve(self, url: str | None) -> str:
        if url:
            return url_id(url)
        return self.synthetic()

    def synthetic(self) -> str:
        # millisecond clock plus a process-local counter; unique per process only
        return f"{self._prefix}_{int(time.time() * 1000)}_{next(self._counter)}"
