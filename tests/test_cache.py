"""
Tests for the result cache
"""
import asyncio

import pytest

from prompthub_search.models.search import Candidate, Query, ScoredResult
from prompthub_search.services.cache import ResultCache, build_cache_key

def results(*ids):
    return [ScoredResult(candidate=Candidate(id=i, name=i), source="keyword") for i in ids]


class TestCacheKey:
    """Tests for cache key construction"""

    def test_tag_order_does_not_matter(self):
        """Test tags are sorted into the key"""
        first = Query.create("email", tags=["a", "b"])
        second = Query.create("email", tags=["b", "a"])

        assert build_cache_key(first) == build_cache_key(second)

    def test_text_is_normalized(self):
        """Test case and whitespace are normalized"""
        assert build_cache_key(Query.create("Business  Email")) == build_cache_key(
            Query.create("business email")
        )

    def test_shape_fields_change_key(self):
        """Test algorithm, size, threshold and user change the key"""
        base = build_cache_key(Query.create("email"))

        assert build_cache_key(Query.create("email", algorithm="keyword")) != base
        assert build_cache_key(Query.create("email", max_results=10)) != base
        assert build_cache_key(Query.create("email", min_confidence=0.6)) != base
        assert build_cache_key(Query.create("email", category="business")) != base
        assert build_cache_key(Query.create("email", user_id="u1")) != base


@pytest.mark.asyncio
class TestResultCache:
    """Tests for cache storage, expiry and accounting"""

    async def test_miss_then_hit(self):
        """Test get after set"""
        cache = ResultCache()

        assert await cache.get("k") == ([], False)
        await cache.set("k", results("a", "b"))
        cached, hit = await cache.get("k")

        assert hit is True
        assert [r.candidate.id for r in cached] == ["a", "b"]

        stats = await cache.stats()
        assert stats["entries"] == 1
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["hit_rate"] == 0.5

    async def test_expired_entry_removed_on_access(self):
        """Test lazy expiry"""
        cache = ResultCache(ttl=0.01)
        await cache.set("k", results("a"))
        await asyncio.sleep(0.05)

        assert await cache.get("k") == ([], False)
        assert (await cache.stats())["entries"] == 0

    async def test_sweep_removes_stale_entries(self):
        """Test sweep drops entries older than multiplier x TTL"""
        cache = ResultCache(ttl=0.01, stale_multiplier=2)
        await cache.set("old", results("a"))
        await asyncio.sleep(0.05)
        await cache.set("fresh", results("b"), ttl=60)

        removed = await cache.sweep()

        assert removed == 1
        assert (await cache.get("fresh"))[1] is True

    async def test_least_used_entry_evicted(self):
        """Test capacity eviction"""
        cache = ResultCache(max_entries=2)
        await cache.set("a", results("a"))
        await cache.set("b", results("b"))
        await cache.get("a")
        await cache.set("c", results("c"))

        assert (await cache.get("a"))[1] is True
        assert (await cache.get("b"))[1] is False
        assert (await cache.get("c"))[1] is True

    async def test_delete_and_clear(self):
        """Test explicit invalidation"""
        cache = ResultCache()
        await cache.set("a", results("a"))
        await cache.set("b", results("b"))

        assert await cache.delete("a") is True
        assert await cache.delete("a") is False
        assert await cache.clear() == 1
        assert (await cache.stats())["entries"] == 0

    async def test_background_sweep_start_stop(self):
        """Test the periodic sweep runs and stops cleanly"""
        cache = ResultCache(ttl=0.01, sweep_interval=0.02, stale_multiplier=1)
        await cache.set("k", results("a"))

        await cache.start()
        assert cache.running
        await asyncio.sleep(0.1)
        await cache.stop()

        assert not cache.running
        assert (await cache.stats())["entries"] == 0

    async def test_concurrent_access(self):
        """Test many concurrent readers and writers"""
        cache = ResultCache()

        async def worker(i):
            await cache.set(f"k{i % 5}", results(str(i)))
            return await cache.get(f"k{i % 5}")

        outcomes = await asyncio.gather(*(worker(i) for i in range(50)))

        assert all(hit for _, hit in outcomes)
        assert (await cache.stats())["entries"] == 5
