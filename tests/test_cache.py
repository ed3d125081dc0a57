"""Tests for the in-memory response cache."""

import pytest

from aerofresh.app.core.cache import CacheConfig, CacheEntry, ResponseCache
from aerofresh.app.core.config import Settings

JSON = "application/json"


class TestCacheKeys:

    def test_key_for(self):
        assert ResponseCache.key_for("GET", "/api/search", "?q=Cessna") == "GET:/api/search:?q=Cessna"
        assert ResponseCache.key_for("GET", "/api/search", "") == "GET:/api/search:"

    @pytest.mark.parametrize(
        "method, response_ok, cache_control, expected",
        [
            ("GET", True, None, True),
            ("get", True, "max-age=60", True),
            ("POST", True, None, False),
            ("GET", False, None, False),
            ("GET", True, "no-cache", False),
            ("GET", True, "private, No-Cache", False),
        ],
    )
    def test_is_cacheable(self, method, response_ok, cache_control, expected):
        assert ResponseCache.is_cacheable(method, response_ok, cache_control) is expected


class TestCacheEntry:

    def test_expiry_boundary(self):
        entry = CacheEntry(body=b"{}", content_type=JSON, expires_at=100)
        assert entry.is_expired(99) is False
        assert entry.is_expired(100) is True


class TestResponseCache:
    """Tests for storage, expiry and eviction."""

    @pytest.fixture
    def cache(self):
        return ResponseCache(CacheConfig(ttl_ms=1000, max_entries=2))

    def test_set_and_get(self, cache):
        cache.set("GET:/a:", b'{"a":1}', JSON, now=0)
        entry = cache.get("GET:/a:", now=500)
        assert entry.body == b'{"a":1}'
        assert entry.content_type == JSON
        assert entry.expires_at == 1000

    def test_get_missing(self, cache):
        assert cache.get("GET:/missing:", now=0) is None

    def test_expired_entry_removed_on_read(self, cache):
        cache.set("GET:/a:", b"{}", JSON, now=0)
        assert "GET:/a:" in cache

        assert cache.get("GET:/a:", now=1000) is None
        assert "GET:/a:" not in cache
        assert len(cache) == 0

    def test_evicts_soonest_expiring_when_full(self, cache):
        cache.set("GET:/a:", b"a", JSON, now=0)
        cache.set("GET:/b:", b"b", JSON, now=10)
        cache.set("GET:/c:", b"c", JSON, now=20)

        assert len(cache) == 2
        assert "GET:/a:" not in cache
        assert "GET:/b:" in cache
        assert "GET:/c:" in cache
        assert cache.evictions == 1

    def test_overwrite_at_capacity_still_evicts(self, cache):
        cache.set("GET:/a:", b"a", JSON, now=0)
        cache.set("GET:/b:", b"b", JSON, now=10)
        cache.set("GET:/b:", b"b2", JSON, now=20)

        assert cache.evictions == 1
        assert "GET:/a:" not in cache
        assert cache.get("GET:/b:", now=20).body == b"b2"
        assert len(cache) == 1

    def test_overwrite_of_soonest_expiring_key(self, cache):
        cache.set("GET:/a:", b"a", JSON, now=0)
        cache.set("GET:/b:", b"b", JSON, now=10)
        cache.set("GET:/a:", b"a2", JSON, now=20)

        assert len(cache) == 2
        assert cache.evictions == 1
        assert cache.get("GET:/a:", now=20).expires_at == 1020

    def test_delete(self, cache):
        cache.set("GET:/a:", b"a", JSON, now=0)
        cache.delete("GET:/a:")
        cache.delete("GET:/never:")
        assert len(cache) == 0

    def test_clear_resets_evictions(self, cache):
        for i in range(3):
            cache.set(f"GET:/{i}:", b"x", JSON, now=i)
        cache.clear()
        assert len(cache) == 0
        assert cache.evictions == 0

    def test_memory_usage(self, cache):
        assert cache.memory_usage() == 0
        cache.set("k", b"abc", JSON, now=0)
        cache.set("key", b"", JSON, now=0)
        assert cache.memory_usage() == (1 + 3) * 2 + (3 + 0) * 2

    def test_memory_usage_counts_characters(self, cache):
        cache.set("k", "\u00e9t\u00e9".encode("utf-8"), JSON, now=0)
        assert cache.memory_usage() == (1 + 3) * 2


class TestCacheConfig:

    def test_defaults(self):
        cache = ResponseCache()
        assert cache.enabled is True
        assert cache.config.ttl_ms == 300_000
        assert cache.config.max_entries == 1000

    def test_from_settings(self):
        settings = Settings(_env_file=None, cache_enabled=False, cache_ttl_ms=5000, cache_max_entries=10)
        config = CacheConfig.from_settings(settings)
        assert config == CacheConfig(ttl_ms=5000, max_entries=10, enabled=False)
