"""Tests for the TTL cache."""

import asyncio

import pytest

from land_auctions.utils.ttl_cache import TTLCache, make_cache_key


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestTTLCache:
    def test_set_and_get(self):
        cache = TTLCache(60, clock=FakeClock())
        cache.set("a", 1)
        assert cache.get("a") == 1
        assert "a" in cache

    def test_expiry(self):
        clock = FakeClock()
        cache = TTLCache(60, clock=clock)
        cache.set("a", 1)
        clock.now += 61
        assert "a" not in cache
        assert cache.get("a", "missing") == "missing"
        assert len(cache) == 0

    def test_invalidate_and_clear(self):
        cache = TTLCache(60)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.invalidate("a")
        assert "a" not in cache
        cache.clear()
        assert len(cache) == 0

    def test_get_or_compute_single_writer(self):
        cache = TTLCache(60)
        calls = []

        async def compute():
            calls.append(1)
            await asyncio.sleep(0.01)
            return "value"

        async def scenario():
            return await asyncio.gather(*(cache.get_or_compute("k", compute) for _ in range(5)))

        assert asyncio.run(scenario()) == ["value"] * 5
        assert len(calls) == 1

    def test_get_or_compute_recomputes_after_expiry(self):
        clock = FakeClock()
        cache = TTLCache(60, clock=clock)
        calls = []

        async def compute():
            calls.append(1)
            return len(calls)

        async def scenario():
            first = await cache.get_or_compute("k", compute)
            clock.now += 120
            second = await cache.get_or_compute("k", compute)
            return first, second

        assert asyncio.run(scenario()) == (1, 2)


class TestMakeCacheKey:
    def test_deterministic(self):
        assert make_cache_key("fields", 41.9, 42.1, 50) == "fields:41.9,42.1,50"
        assert make_cache_key("fields", 41.9, 42.1, 50) == make_cache_key("fields", 41.9, 42.1, 50)


class TestTTLCacheBounds:
    def test_locks_released_after_compute(self):
        cache = TTLCache(0.0)

        async def compute():
            return "value"

        async def scenario():
            for i in range(1000):
                await cache.get_or_compute(f"address-{i}", compute)

        asyncio.run(scenario())
        assert len(cache._locks) == 0
        assert len(cache._waiting) == 0
        assert len(cache._entries) <= 1

    def test_lock_kept_while_tasks_wait(self):
        cache = TTLCache(60)
        seen = []

        async def compute():
            await asyncio.sleep(0.01)
            seen.append(len(cache._locks))
            return "value"

        async def scenario():
            await asyncio.gather(*(cache.get_or_compute("k", compute) for _ in range(3)))

        asyncio.run(scenario())
        assert seen == [1]
        assert cache._locks == {}

    def test_failed_compute_releases_lock_and_is_not_cached(self):
        cache = TTLCache(60)

        async def explode():
            raise TimeoutError("provider down")

        async def scenario():
            with pytest.raises(TimeoutError):
                await cache.get_or_compute("k", explode)
            return "k" in cache

        assert asyncio.run(scenario()) is False
        assert cache._locks == {}

    def test_expired_entries_purged_on_set(self):
        clock = FakeClock()
        cache = TTLCache(60, clock=clock)
        for i in range(10):
            cache.set(f"k{i}", i)
        clock.now += 61
        cache.set("fresh", 1)
        assert list(cache._entries) == ["fresh"]

    def test_purge_expired(self):
        clock = FakeClock()
        cache = TTLCache(60, clock=clock)
        cache.set("a", 1)
        clock.now += 30
        cache.set("b", 2)
        clock.now += 31
        assert cache.purge_expired() == 1
        assert cache.get("b") == 2
