"""
In-process TTL caches.

Caches are plain objects constructed once at startup and handed to the
components that need them (context store, taxonomy resolver, repository).
Expiry is checked lazily on read; there is no background eviction.
"""

from __future__ import annotations

import hashlib
import time
from collections import OrderedDict
from typing import Any


class CacheEntry:
    __slots__ = ("value", "expires_at", "hits")

    def __init__(self, value: Any, expires_at: float) -> None:
        self.value = value
        self.expires_at = expires_at
        self.hits = 0

    def is_expired(self, now: float | None = None) -> bool:
        return (now if now is not None else time.time()) >= self.expires_at

    def increment_hits(self) -> None:
        self.hits += 1


class TTLCache:
    """Bounded LRU cache whose entries expire `ttl` seconds after their last write."""

    def __init__(
        self,
        name: str,
        max_size: int = 1000,
        default_ttl: float = 300.0,
        enabled: bool = True,
    ) -> None:
        self.name = name
        self.max_size = max_size
        self.default_ttl = default_ttl
        self.enabled = enabled
        self._store: OrderedDict[str, CacheEntry] = OrderedDict()
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Any | None:
        if not self.enabled:
            return None
        entry = self._store.get(key)
        if entry is None:
            self._misses += 1
            return None
        if entry.is_expired():
            self._store.pop(key, None)
            self._misses += 1
            return None
        entry.increment_hits()
        self._store.move_to_end(key)
        self._hits += 1
        return entry.value

    def contains(self, key: str) -> bool:
        """True when a live entry exists, even if its value is None."""
        entry = self._store.get(key)
        return entry is not None and not entry.is_expired()

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        if not self.enabled:
            return
        lifetime = self.default_ttl if ttl is None else ttl
        self._store[key] = CacheEntry(value, time.time() + lifetime)
        self._store.move_to_end(key)
        while len(self._store) > self.max_size:
            self._store.popitem(last=False)

    def delete(self, key: str) -> None:
        self._store.pop(key, None)

    def clear(self) -> None:
        self._store.clear()

    def cleanup_expired(self) -> int:
        now = time.time()
        expired = [key for key, entry in self._store.items() if entry.is_expired(now)]
        for key in expired:
            del self._store[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._store)

    def get_stats(self) -> dict[str, Any]:
        lookups = self._hits + self._misses
        return {
            "name": self.name,
            "size": len(self._store),
            "max_size": self.max_size,
            "default_ttl": self.default_ttl,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / lookups, 4) if lookups else 0.0,
        }


def make_cache_key(*parts: Any) -> str:
    raw = "|".join(repr(part) for part in parts)
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()[:16]
