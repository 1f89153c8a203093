from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable

Clock = Callable[[], float]


def normalize_query(query: str | None) -> str:
    return (query or "").strip().lower()


@dataclass(frozen=True)
class CacheEntry:
    key: str
    value: list[dict[str, Any]]
    created_at: float


class SearchCache:
    """In-process TTL cache for species search results.

    Expiry is lazy: a stale entry is dropped when it is read. There is no
    capacity bound and no background sweep. Neither `get` nor `put` awaits,
    so on a single event loop they cannot interleave; two concurrent misses
    on the same key both fetch and the later `put` wins.
    """

    def __init__(self, ttl_seconds: float = 300.0, clock: Clock | None = None) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock or time.monotonic
        self._entries: dict[str, CacheEntry] = {}

    def get(self, query: str | None) -> list[dict[str, Any]] | None:
        key = normalize_query(query)
        if not key:
            return None
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.created_at > self.ttl_seconds:
            del self._entries[key]
            return None
        return list(entry.value)

    def put(self, query: str | None, results: list[dict[str, Any]]) -> None:
        key = normalize_query(query)
        if not key:
            return
        self._entries[key] = CacheEntry(key=key, value=list(results), created_at=self._clock())

    def __contains__(self, query: object) -> bool:
        return isinstance(query, str) and normalize_query(query) in self._entries

    def __len__(self) -> int:
        return len(self._entries)
