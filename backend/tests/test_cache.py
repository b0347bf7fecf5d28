"""Test caching implementation."""

import time

from backend.dinver_ai.cache import CacheEntry, TTLCache, make_cache_key


class TestCacheEntry:
    """Test cache entry functionality."""

    def test_entry_expiration(self):
        """Cache entry should detect expiration."""
        assert CacheEntry("value", time.time() - 1).is_expired()
        assert not CacheEntry("value", time.time() + 10).is_expired()

    def test_entry_hit_tracking(self):
        entry = CacheEntry("value", time.time() + 10)
        entry.increment_hits()
        entry.increment_hits()
        assert entry.hits == 2


class TestTTLCache:
    """Test TTL cache functionality."""

    def test_cache_get_set(self):
        cache = TTLCache("test", default_ttl=10)
        cache.set("key1", "value1")
        assert cache.get("key1") == "value1"
        assert cache.get("non_existent") is None

    def test_cache_custom_ttl(self):
        """Cache should respect custom TTL per entry."""
        cache = TTLCache("test", default_ttl=10)
        cache.set("short", "value", ttl=0.1)
        cache.set("long", "value")

        time.sleep(0.15)
        assert cache.get("short") is None
        assert cache.get("long") == "value"

    def test_rewrite_restarts_ttl(self):
        cache = TTLCache("test", default_ttl=0.2)
        cache.set("thread", "a")
        time.sleep(0.12)
        cache.set("thread", "b")
        time.sleep(0.12)
        assert cache.get("thread") == "b"

    def test_cache_lru_eviction(self):
        """Cache should evict LRU entry when full."""
        cache = TTLCache("test", max_size=3, default_ttl=10)
        cache.set("key1", "value1")
        cache.set("key2", "value2")
        cache.set("key3", "value3")
        cache.get("key1")
        cache.get("key2")

        cache.set("key4", "value4")

        assert cache.get("key3") is None
        assert cache.get("key1") == "value1"
        assert len(cache) == 3

    def test_cache_disabled(self):
        cache = TTLCache("test", enabled=False)
        cache.set("key1", "value1")
        assert cache.get("key1") is None

    def test_contains_and_delete(self):
        cache = TTLCache("test")
        cache.set("none", None)
        assert cache.contains("none")
        cache.delete("none")
        assert not cache.contains("none")

    def test_cache_cleanup_expired(self):
        cache = TTLCache("test", default_ttl=10)
        cache.set("expire1", "value", ttl=0.1)
        cache.set("expire2", "value", ttl=0.1)
        cache.set("keep", "value", ttl=10)

        time.sleep(0.15)

        assert cache.cleanup_expired() == 2
        assert cache.get("keep") == "value"

    def test_cache_stats(self):
        cache = TTLCache("test", max_size=10)
        cache.set("key1", "value1")
        cache.get("key1")
        cache.get("key1")
        cache.get("missing")
        cache.get("missing")

        stats = cache.get_stats()
        assert stats["name"] == "test"
        assert stats["size"] == 1
        assert stats["hits"] == 2
        assert stats["misses"] == 2
        assert stats["hit_rate"] == 0.5

    def test_cache_clear(self):
        cache = TTLCache("test")
        cache.set("key1", "value1")
        cache.clear()
        assert cache.get("key1") is None


def test_make_cache_key():
    """Cache key generation should be consistent."""
    assert make_cache_key("r1", [1, 2]) == make_cache_key("r1", [1, 2])
    assert make_cache_key("r1", [1, 2]) != make_cache_key("r1", [2, 1])
    assert len(make_cache_key("test", 123, None, True)) == 16
