"""Tests for the result cache."""

import asyncio

import pytest

from wealthpilot.cache import ANALYSIS_KEY, MemoryStore, ResultCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class Counter:
    """Async compute that counts its invocations."""

    def __init__(self, value: object = "result", delay: float = 0.0) -> None:
        self.calls = 0
        self.value = value
        self.delay = delay

    async def __call__(self) -> object:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.value


class TestMemoryStore:
    def test_expiry(self) -> None:
        clock = FakeClock()
        store = MemoryStore(clock=clock)
        store.set("k", 1, ttl=10)

        assert "k" in store
        clock.now += 9
        assert store.get("k") == 1
        clock.now += 1
        assert "k" not in store
        assert len(store) == 0

    def test_no_expiry(self) -> None:
        clock = FakeClock()
        store = MemoryStore(clock=clock)
        store.set("k", None, ttl=None)
        clock.now += 10**9
        assert store.get("k") is None
        assert "k" in store

    def test_delete_and_clear(self) -> None:
        store = MemoryStore()
        store.set("a", 1, ttl=None)
        store.set("b", 2, ttl=None)
        store.delete("a")
        store.delete("missing")
        assert len(store) == 1
        store.clear()
        assert len(store) == 0


class TestResultCache:
    @pytest.mark.asyncio
    async def test_second_call_is_a_hit(self) -> None:
        cache = ResultCache()
        compute = Counter()

        assert await cache.get_or_compute("k", 60, compute) == "result"
        assert await cache.get_or_compute("k", 60, compute) == "result"
        assert compute.calls == 1

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_compute(self) -> None:
        cache = ResultCache()
        compute = Counter(delay=0.01)

        results = await asyncio.gather(*(cache.get_or_compute("k", 60, compute) for _ in range(5)))

        assert results == ["result"] * 5
        assert compute.calls == 1
        assert cache._locks == {}

    @pytest.mark.asyncio
    async def test_errors_are_not_cached(self) -> None:
        cache = ResultCache()
        attempts = 0

        async def flaky() -> str:
            nonlocal attempts
            attempts += 1
            if attempts == 1:
                raise ConnectionError("profile store unavailable")
            return "ok"

        with pytest.raises(ConnectionError):
            await cache.get_or_compute("k", 60, flaky)
        assert await cache.get_or_compute("k", 60, flaky) == "ok"
        assert attempts == 2

    @pytest.mark.asyncio
    async def test_zero_ttl_stores_nothing(self) -> None:
        cache = ResultCache()
        compute = Counter()
        await cache.get_or_compute("k", 0, compute)
        await cache.get_or_compute("k", 0, compute)
        assert compute.calls == 2

    @pytest.mark.asyncio
    async def test_disabled(self) -> None:
        cache = ResultCache(enabled=False)
        compute = Counter()
        await cache.get_or_compute("k", 60, compute)
        await cache.get_or_compute("k", 60, compute)
        assert compute.calls == 2
        assert len(cache.store) == 0

    @pytest.mark.asyncio
    async def test_expired_entry_recomputed(self) -> None:
        clock = FakeClock()
        cache = ResultCache(store=MemoryStore(clock=clock))
        compute = Counter()

        await cache.get_or_compute("k", 60, compute)
        clock.now += 61
        await cache.get_or_compute("k", 60, compute)
        assert compute.calls == 2

    @pytest.mark.asyncio
    async def test_invalidate(self) -> None:
        cache = ResultCache()
        await cache.get_or_compute(ResultCache.analysis_key("u1"), 60, Counter())
        await cache.get_or_compute(ResultCache.plan_key("u1"), 60, Counter())
        await cache.get_or_compute(ResultCache.plan_key("u2"), 60, Counter())

        cache.invalidate("u1")

        assert len(cache.store) == 1
        assert ResultCache.plan_key("u2") in cache.store

    @pytest.mark.asyncio
    async def test_invalidate_during_compute_discards_result(self) -> None:
        cache = ResultCache()
        key = ResultCache.analysis_key("u1")
        started = asyncio.Event()
        release = asyncio.Event()

        async def stale() -> str:
            started.set()
            await release.wait()
            return "old"

        task = asyncio.create_task(cache.get_or_compute(key, 60, stale))
        await started.wait()
        cache.invalidate("u1")
        release.set()

        assert await task == "old"
        assert key not in cache.store
        assert await cache.get_or_compute(key, 60, Counter("new")) == "new"
        assert await cache.get_or_compute(key, 60, Counter("newer")) == "new"

    @pytest.mark.asyncio
    async def test_clear_during_compute_discards_result(self) -> None:
        cache = ResultCache()
        started = asyncio.Event()
        release = asyncio.Event()

        async def stale() -> str:
            started.set()
            await release.wait()
            return "old"

        task = asyncio.create_task(cache.get_or_compute("k", 60, stale))
        await started.wait()
        cache.clear()
        release.set()

        assert await task == "old"
        assert len(cache.store) == 0

    def test_keys(self) -> None:
        assert ResultCache.analysis_key(42) == "holistic_analysis_42"
        assert ResultCache.plan_key("42") == "holistic_plan_42"

    @pytest.mark.asyncio
    async def test_decorator(self) -> None:
        cache = ResultCache()
        calls: list[str] = []

        @cache.cached(ANALYSIS_KEY, ttl=60)
        async def analyse(user_id: str, scale: int = 1) -> int:
            calls.append(user_id)
            return len(user_id) * scale

        assert await analyse("abc") == 3
        assert await analyse("abc") == 3
        assert await analyse("de") == 2
        assert calls == ["abc", "de"]
        assert analyse.__name__ == "analyse"
