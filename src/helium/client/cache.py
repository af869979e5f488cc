"""In-memory TTL cache for panel read responses."""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

CacheKey = tuple[str, str, str]


@dataclass(frozen=True)
class CacheEntry:
    """A memoized response and the monotonic time it stops being valid."""

    value: Any
    expires_at: float


def make_key(method: str, path: str, params: dict[str, Any] | None = None) -> CacheKey:
    """Build a cache key from the request signature.

    Query parameters are sorted so that ``{"a": 1, "b": 2}`` and
    ``{"b": 2, "a": 1}`` share an entry.
    """
    query = "&".join(f"{k}={v}" for k, v in sorted((params or {}).items()))
    return (method.upper(), path, query)


class TTLCache:
    """Per-client cache; entries are never returned once ``now > expires_at``."""

    def __init__(self, ttl: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[CacheKey, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: CacheKey) -> bool:
        return self.get(key) is not None

    def get(self, key: CacheKey) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() > entry.expires_at:
            del self._entries[key]
            return None
        return entry.value

    def set(self, key: CacheKey, value: Any) -> None:
        if self.ttl <= 0:
            return
        now = self._clock()
        self.purge_expired(now)
        self._entries[key] = CacheEntry(value=value, expires_at=now + self.ttl)

    def purge_expired(self, now: float | None = None) -> int:
        """Drop every entry past its TTL; return how many were dropped."""
        now = self._clock() if now is None else now
        stale = [key for key, entry in self._entries.items() if now > entry.expires_at]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def evict_paths(self, paths: Iterable[str]) -> int:
        """Drop every entry whose request path is in *paths*, whatever the query."""
        targets = set(paths)
        stale = [key for key in self._entries if key[1] in targets]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()
