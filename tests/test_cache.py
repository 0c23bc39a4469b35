"""
Unit Tests for the TTL Cache

STAFF ENGINEER PATTERNS:
------------------------
1. Injected clock - no sleeps
2. Expiry boundary tested exactly
3. Eviction order verified
"""

import pytest

from climate_rag.cache import TTLCache, normalize_key


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


# ---------------------------------------------------------------------------
# KEY NORMALIZATION
# ---------------------------------------------------------------------------


class TestNormalizeKey:

    def test_lowercase_trim_collapse(self):
        assert normalize_key("  What IS   BECCS\t") == "what is beccs"

    def test_idempotent(self):
        key = normalize_key("  Carbon   Capture ")
        assert normalize_key(key) == key


# ---------------------------------------------------------------------------
# GET / SET
# ---------------------------------------------------------------------------


class TestTTLCache:

    def test_miss_returns_none(self, clock):
        cache = TTLCache(clock=clock)
        assert cache.get("anything") is None

    def test_set_then_get(self, clock):
        cache = TTLCache(clock=clock)
        cache.set("what is beccs", "value")
        assert cache.get("what is beccs") == "value"

    def test_variants_share_an_entry(self, clock):
        cache = TTLCache(clock=clock)
        cache.set("  What is   BECCS ", "value")

        assert cache.get("what is beccs") == "value"
        assert "WHAT IS BECCS" in cache
        assert len(cache) == 1

    def test_entry_expires_at_ttl(self, clock):
        cache = TTLCache(ttl_seconds=3600, clock=clock)
        cache.set("q", "value")

        clock.now = 3599.9
        assert cache.get("q") == "value"

        clock.now = 3600.0
        assert cache.get("q") is None
        assert len(cache) == 0

    def test_oldest_evicted_past_capacity(self, clock):
        cache = TTLCache(max_entries=2, clock=clock)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("c", 3)

        assert cache.get("a") is None
        assert cache.get("b") == 2
        assert cache.get("c") == 3
        assert len(cache) == 2

    def test_reinsert_refreshes_position(self, clock):
        cache = TTLCache(max_entries=2, clock=clock)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("a", 10)
        cache.set("c", 3)

        assert cache.get("a") == 10
        assert cache.get("b") is None

    def test_reinsert_refreshes_ttl(self, clock):
        cache = TTLCache(ttl_seconds=10, clock=clock)
        cache.set("a", 1)
        clock.now = 8
        cache.set("a", 2)
        clock.now = 15
        assert cache.get("a") == 2

    def test_zero_capacity_never_stores(self, clock):
        cache = TTLCache(max_entries=0, clock=clock)
        cache.set("a", 1)
        assert cache.get("a") is None
        assert len(cache) == 0

    def test_clear(self, clock):
        cache = TTLCache(clock=clock)
        cache.set("a", 1)
        cache.clear()
        assert len(cache) == 0
