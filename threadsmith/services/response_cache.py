"""Bounded TTL cache for raw checker responses."""
from __future__ import annotations

import hashlib
from collections import OrderedDict
from time import monotonic
from typing import Any, Callable, Dict, Generic, Optional, Tuple, TypeVar

V = TypeVar("V")


class ResponseCache(Generic[V]):
    """LRU cache with a time-to-live, keyed by ``(text, language)``.

    The full text participates in the key, so a hit always carries offsets
    computed against exactly the text being checked.
    """

    def __init__(
        self,
        max_entries: int = 500,
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = monotonic,
    ) -> None:
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: OrderedDict[str, Tuple[V, float]] = OrderedDict()  # key -> (value, stored_at)
        self._hits = 0
        self._misses = 0

    @staticmethod
    def make_key(text: str, language: str) -> str:
        combined = f"{language}\x00{text}"
        return hashlib.sha256(combined.encode("utf-8")).hexdigest()

    def get(self, text: str, language: str) -> Optional[V]:
        key = self.make_key(text, language)
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None

        value, stored_at = entry
        if self._clock() - stored_at > self.ttl_seconds:
            del self._entries[key]
            self._misses += 1
            return None

        self._entries.move_to_end(key)
        self._hits += 1
        return value

    def put(self, text: str, language: str, value: V) -> None:
        key = self.make_key(text, language)
        if key in self._entries:
            self._entries.move_to_end(key)
        elif len(self._entries) >= self.max_entries:
            self._entries.popitem(last=False)
        self._entries[key] = (value, self._clock())

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def stats(self) -> Dict[str, Any]:
        total_requests = self._hits + self._misses
        hit_rate = self._hits / total_requests if total_requests > 0 else 0.0
        return {
            "cache_size": len(self._entries),
            "cache_hits": self._hits,
            "cache_misses": self._misses,
            "hit_rate": round(hit_rate, 4),
            "total_requests": total_requests,
        }


__all__ = ["ResponseCache"]
