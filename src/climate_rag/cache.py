"""
Bounded TTL cache for query-keyed values (embeddings, spelling corrections).

Keys are normalized (lowercased, trimmed, whitespace collapsed) so queries
that differ only by case or spacing share an entry. Expiry is checked
lazily on read; once the cache grows past max_entries the oldest inserted
entry is evicted. There is no background sweep.

The clock is injectable so tests can advance time deterministically, and
max_entries=0 gives a cache that never stores anything.

Concurrent writers may race on the same key; the last write wins, which is
fine because values for the same normalized query are interchangeable.
"""

from __future__ import annotations

import re
import time
from collections import OrderedDict
from typing import Callable, Generic, TypeVar

V = TypeVar("V")

_WHITESPACE = re.compile(r"\s+")


def normalize_key(text: str) -> str:
    """Lowercase, trim and collapse whitespace. Idempotent."""
    return _WHITESPACE.sub(" ", text.lower().strip())


class TTLCache(Generic[V]):
    """Insertion-ordered cache with per-entry TTL and a size bound."""

    def __init__(
        self,
        ttl_seconds: float = 3600.0,
        max_entries: int = 500,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, tuple[V, float]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, text: str) -> bool:
        return self.get(text) is not None

    def get(self, text: str) -> V | None:
        """Return the cached value, or None if missing or expired."""
        key = normalize_key(text)
        entry = self._entries.get(key)
        if entry is None:
            return None

        value, stored_at = entry
        if self._clock() - stored_at >= self.ttl_seconds:
            self._entries.pop(key, None)
            return None
        return value

    def set(self, text: str, value: V) -> None:
        """Store a value, evicting the oldest entries beyond capacity."""
        if self.max_entries <= 0:
            return

        key = normalize_key(text)
        # Re-inserting moves the key to the back so it is evicted last
        self._entries.pop(key, None)
        self._entries[key] = (value, self._clock())

        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        self._entries.clear()
