"""
Tests for AnalysisCache: TTL expiry, statistics and single-flight computation.
"""
import threading
import time

import pandas as pd
import pytest

from ta_engine.orchestration.cache import AnalysisCache, make_cache_key
from ta_engine.shared.errors import InvalidConfigurationError


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return AnalysisCache(ttl_seconds=300, clock=clock)


class TestAnalysisCache:
    def test_put_and_get(self, cache):
        cache.put("k", 1)
        assert cache.get("k") == 1
        assert cache.hits == 1

    def test_miss(self, cache):
        assert cache.get("missing") is None
        assert cache.misses == 1

    def test_expiry(self, cache, clock):
        cache.put("k", 1)
        clock.now = 299.9
        assert cache.get("k") == 1
        clock.now = 300.0
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_get_or_compute(self, cache):
        calls = []

        def compute():
            calls.append(1)
            return "value"

        assert cache.get_or_compute("k", compute) == "value"
        assert cache.get_or_compute("k", compute) == "value"
        assert len(calls) == 1
        assert (cache.hits, cache.misses) == (1, 1)

    def test_recompute_after_expiry(self, cache, clock):
        cache.get_or_compute("k", lambda: "old")
        clock.now = 301
        assert cache.get_or_compute("k", lambda: "new") == "new"

    def test_errors_not_cached(self, cache):
        def fail():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            cache.get_or_compute("k", fail)
        assert cache._key_locks == {}
        assert cache.get_or_compute("k", lambda: 2) == 2

    def test_concurrent_callers_compute_once(self):
        cache = AnalysisCache()
        calls = []

        def compute():
            calls.append(1)
            time.sleep(0.05)
            return "value"

        results = []
        threads = [
            threading.Thread(target=lambda: results.append(cache.get_or_compute("k", compute)))
            for _ in range(5)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert results == ["value"] * 5
        assert len(calls) == 1
        assert cache._key_locks == {}

    def test_entries_bounded_across_new_keys(self, cache, clock):
        """Each new bar yields a new key; old keys must not pile up."""
        for i in range(1000):
            clock.now += 600
            cache.get_or_compute(("AAPL", i), lambda: i)
        assert len(cache) == 1
        assert list(cache._entries) == [("AAPL", 999)]
        assert cache._key_locks == {}

    def test_store_purges_only_expired(self, cache, clock):
        cache.put("a", 1)
        clock.now = 100
        cache.put("b", 2)
        assert set(cache._entries) == {"a", "b"}
        clock.now = 350
        cache.put("c", 3)
        assert set(cache._entries) == {"b", "c"}

    def test_key_lock_released_after_compute(self, cache):
        cache.get_or_compute("k", lambda: 1)
        cache.get_or_compute("k", lambda: 2)
        assert cache._key_locks == {}

    def test_delete(self, cache):
        cache.put("k", 1)
        assert cache.delete("k") is True
        assert cache.delete("k") is False

    def test_clear_resets_stats(self, cache):
        cache.put("k", 1)
        cache.get("k")
        cache.clear()
        stats = cache.get_stats()
        assert stats["size"] == 0
        assert stats["hits"] == 0
        assert stats["misses"] == 0

    def test_stats(self, cache):
        cache.put("a", 1)
        cache.get("a")
        cache.get("b")
        stats = cache.get_stats()
        assert stats["keys"] == ["a"]
        assert stats["total_requests"] == 2
        assert stats["hit_rate_pct"] == 50.0
        assert stats["ttl_seconds"] == 300

    def test_repr(self, cache):
        assert repr(cache) == "AnalysisCache(size=0, ttl=300s, hits=0, misses=0, hit_rate=0.0%)"

    def test_invalid_ttl(self):
        with pytest.raises(InvalidConfigurationError):
            AnalysisCache(ttl_seconds=0)


def test_cache_key_changes_with_new_bar():
    first = make_cache_key("AAPL", 100, "2024-01-02")
    assert first == ("AAPL", 100, pd.Timestamp("2024-01-02"))
    assert make_cache_key("AAPL", 101, "2024-01-03") != first
