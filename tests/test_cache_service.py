"""Tests for cache policies, single-flight loading and sweeping."""

import asyncio

import pytest

from conftest import FakeClock, drain
from portfolio_activity.repositories import MemoryCacheRepository
from portfolio_activity.services import CachePolicy, CacheService, CacheSweeper, EntryState


class CountingLoader:
    """Loader that counts invocations and can be made to fail."""

    def __init__(self, value="value", delay: float = 0, error: Exception | None = None) -> None:
        self.value = value
        self.delay = delay
        self.error = error
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.value


class TestCacheStore:
    def test_get_after_set_returns_value(self, proxy_cache):
        proxy_cache.set("github-profile:octocat", {"login": "octocat"}, tags=("github",))
        entry = proxy_cache.get("github-profile:octocat")
        assert entry.value == {"login": "octocat"}
        assert entry.tags == frozenset({"github"})
        assert proxy_cache.state("github-profile:octocat") is EntryState.FRESH

    def test_set_replaces_entry(self, proxy_cache):
        first = proxy_cache.set("k", 1)
        second = proxy_cache.set("k", 2)
        assert first is not second
        assert proxy_cache.get("k").value == 2

    def test_fresh_until_ttl_boundary(self, metadata_cache, clock):
        metadata_cache.set("k", "v", ttl=10)
        clock.advance(10)
        assert metadata_cache.get("k").value == "v"
        clock.advance(0.001)
        assert metadata_cache.get("k") is None

    def test_strict_read_past_ttl_evicts(self, metadata_cache, clock):
        metadata_cache.set("k", "v")
        clock.advance(3601)
        assert metadata_cache.get("k") is None
        assert metadata_cache.repository.count() == 0

    def test_stale_entry_still_readable_under_swr(self, proxy_cache, clock):
        proxy_cache.set("k", "v")
        clock.advance(1801)
        assert proxy_cache.get("k").value == "v"
        assert proxy_cache.state("k") is EntryState.STALE

    def test_invalidate_by_tag(self, proxy_cache):
        proxy_cache.set("github-profile:octocat", "p", tags=("github", "profile"))
        proxy_cache.set("github-repos:a/x", "r", tags=("github", "repositories"))
        proxy_cache.set("coding-stats:wakapi:octo:last_7_days", "s", tags=("coding-stats", "wakapi"))

        assert proxy_cache.invalidate_by_tag("github") == 2
        assert proxy_cache.get("github-profile:octocat") is None
        assert proxy_cache.get("github-repos:a/x") is None
        assert proxy_cache.get("coding-stats:wakapi:octo:last_7_days").value == "s"

    def test_invalidate_ignores_fresh_status(self, proxy_cache):
        proxy_cache.set("k", "v", ttl=10_000, tags=("github",))
        assert proxy_cache.invalidate_by_tag("github") == 1
        assert proxy_cache.state("k") is EntryState.ABSENT

    def test_sweep_removes_only_expired(self, metadata_cache, clock):
        metadata_cache.set("short", 1, ttl=10)
        metadata_cache.set("long", 2, ttl=100)
        clock.advance(50)
        assert metadata_cache.sweep_expired() == 1
        assert metadata_cache.repository.keys() == ["long"]

    def test_swr_entry_evicted_after_ttl_plus_grace(self, proxy_cache, clock):
        proxy_cache.set("k", "v")
        clock.advance(1800 + 300)
        assert proxy_cache.get("k").value == "v"
        clock.advance(0.001)
        assert proxy_cache.state("k") is EntryState.ABSENT
        assert proxy_cache.get("k") is None
        assert proxy_cache.repository.count() == 0

    def test_negative_grace_rejected(self):
        with pytest.raises(ValueError):
            CacheService.create(repository=MemoryCacheRepository.create(), stale_grace=-1)

    def test_delete_with_expected_keeps_replacement(self):
        repository = MemoryCacheRepository.create()
        cache = CacheService.create(repository=repository, clock=FakeClock())
        old = cache.set("k", 1)
        cache.set("k", 2)
        assert repository.delete("k", expected=old) is False
        assert repository.get("k").value == 2


class TestGetOrLoad:
    @pytest.mark.asyncio
    async def test_miss_loads_and_caches(self, proxy_cache):
        loader = CountingLoader("fresh")
        assert await proxy_cache.get_or_load("k", loader, tags=("github",)) == "fresh"
        assert await proxy_cache.get_or_load("k", loader) == "fresh"
        assert loader.calls == 1
        assert proxy_cache.get("k").tags == frozenset({"github"})

    @pytest.mark.asyncio
    async def test_concurrent_misses_share_one_load(self, proxy_cache):
        loader = CountingLoader("shared", delay=0.01)
        results = await asyncio.gather(*(proxy_cache.get_or_load("k", loader) for _ in range(10)))
        assert results == ["shared"] * 10
        assert loader.calls == 1
        assert proxy_cache.in_flight == 0

    @pytest.mark.asyncio
    async def test_different_keys_load_independently(self, proxy_cache):
        loader = CountingLoader(delay=0.01)
        await asyncio.gather(proxy_cache.get_or_load("a", loader), proxy_cache.get_or_load("b", loader))
        assert loader.calls == 2

    @pytest.mark.asyncio
    async def test_failed_load_reaches_every_waiter_and_is_not_cached(self, proxy_cache):
        loader = CountingLoader(delay=0.01, error=RuntimeError("upstream down"))
        results = await asyncio.gather(
            *(proxy_cache.get_or_load("k", loader) for _ in range(3)),
            return_exceptions=True,
        )
        assert all(isinstance(result, RuntimeError) for result in results)
        assert loader.calls == 1
        assert proxy_cache.get("k") is None

    @pytest.mark.asyncio
    async def test_stale_value_served_while_refreshing(self, proxy_cache, clock):
        proxy_cache.set("k", "old")
        clock.advance(1801)
        loader = CountingLoader("new", delay=0.01)

        assert await proxy_cache.get_or_load("k", loader) == "old"
        assert proxy_cache.state("k") is EntryState.REFRESHING
        # A second stale read joins the running refresh
        assert await proxy_cache.get_or_load("k", loader) == "old"

        await drain(proxy_cache)
        assert loader.calls == 1
        assert proxy_cache.get("k").value == "new"
        assert proxy_cache.state("k") is EntryState.FRESH

    @pytest.mark.asyncio
    async def test_failed_refresh_keeps_stale_value(self, proxy_cache, clock):
        proxy_cache.set("k", "old")
        clock.advance(1801)
        loader = CountingLoader(error=RuntimeError("boom"))

        assert await proxy_cache.get_or_load("k", loader) == "old"
        await drain(proxy_cache)
        assert proxy_cache.get("k").value == "old"
        assert proxy_cache.state("k") is EntryState.STALE

    @pytest.mark.asyncio
    async def test_strict_policy_reloads_synchronously(self, metadata_cache, clock):
        metadata_cache.set("k", "old")
        clock.advance(3601)
        loader = CountingLoader("new")
        assert await metadata_cache.get_or_load("k", loader) == "new"
        assert loader.calls == 1

    @pytest.mark.asyncio
    async def test_stale_past_grace_reloads_synchronously(self, proxy_cache, clock):
        proxy_cache.set("k", "old")
        clock.advance(1800 + 300 + 1)
        loader = CountingLoader("new")
        assert await proxy_cache.get_or_load("k", loader) == "new"
        assert loader.calls == 1
        assert proxy_cache.state("k") is EntryState.FRESH

    @pytest.mark.asyncio
    async def test_invalidate_during_load_discards_result(self, proxy_cache):
        loader = CountingLoader("before", delay=0.05)
        task = asyncio.create_task(proxy_cache.get_or_load("k", loader, tags=("github", "profile")))
        await asyncio.sleep(0.01)

        assert proxy_cache.invalidate_by_tag("profile") == 0
        assert await task == "before"
        assert proxy_cache.get("k") is None
        assert proxy_cache.in_flight == 0

        loader.value = "after"
        assert await proxy_cache.get_or_load("k", loader, tags=("github", "profile")) == "after"
        assert loader.calls == 2
        assert proxy_cache.get("k").value == "after"

    @pytest.mark.asyncio
    async def test_invalidate_during_refresh_keeps_key_absent(self, proxy_cache, clock):
        proxy_cache.set("k", "old", tags=("github",))
        clock.advance(1801)
        loader = CountingLoader("new", delay=0.02)

        assert await proxy_cache.get_or_load("k", loader, tags=("github",)) == "old"
        assert proxy_cache.invalidate_by_tag("github") == 1
        await asyncio.sleep(0.05)

        assert loader.calls == 1
        assert proxy_cache.state("k") is EntryState.ABSENT

    @pytest.mark.asyncio
    async def test_invalidate_leaves_other_loads_running(self, proxy_cache):
        loader = CountingLoader("stats", delay=0.02)
        task = asyncio.create_task(proxy_cache.get_or_load("stats", loader, tags=("coding-stats",)))
        await asyncio.sleep(0.005)

        proxy_cache.invalidate_by_tag("github")
        assert await task == "stats"
        assert proxy_cache.get("stats").value == "stats"

    @pytest.mark.asyncio
    async def test_close_cancels_detached_loads(self, proxy_cache):
        loader = CountingLoader(delay=10)
        task = asyncio.create_task(proxy_cache.get_or_load("k", loader, tags=("github",)))
        await asyncio.sleep(0.01)
        proxy_cache.invalidate_by_tag("github")
        await proxy_cache.close()
        with pytest.raises(asyncio.CancelledError):
            await task

    @pytest.mark.asyncio
    async def test_cancelled_caller_does_not_cancel_shared_load(self, proxy_cache):
        loader = CountingLoader("shared", delay=0.05)
        first = asyncio.create_task(proxy_cache.get_or_load("k", loader))
        second = asyncio.create_task(proxy_cache.get_or_load("k", loader))
        await asyncio.sleep(0.01)
        first.cancel()

        assert await second == "shared"
        with pytest.raises(asyncio.CancelledError):
            await first
        assert loader.calls == 1

    @pytest.mark.asyncio
    async def test_close_cancels_running_loads(self, proxy_cache):
        loader = CountingLoader(delay=10)
        task = asyncio.create_task(proxy_cache.get_or_load("k", loader))
        await asyncio.sleep(0.01)
        await proxy_cache.close()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert proxy_cache.in_flight == 0


class FlakyRepository(MemoryCacheRepository):
    """Repository whose first sweep fails."""

    def __init__(self) -> None:
        super().__init__("flaky")
        self.sweeps = 0

    def sweep_expired(self, now: float) -> int:
        self.sweeps += 1
        if self.sweeps == 1:
            raise RuntimeError("sweep failed")
        return super().sweep_expired(now)


class TestCacheSweeper:
    def test_rejects_non_positive_interval(self, metadata_cache):
        with pytest.raises(ValueError):
            CacheSweeper(metadata_cache, interval=0)

    def test_run_once_after_ttl_removes_entry(self, metadata_cache, clock):
        metadata_cache.set("image-metadata:photos/a.jpg", "meta")
        clock.advance(3601)
        assert CacheSweeper(metadata_cache, interval=300).run_once() == 1
        assert metadata_cache.get("image-metadata:photos/a.jpg") is None
        assert metadata_cache.repository.count() == 0

    def test_proxy_entries_swept_after_ttl_plus_grace(self, proxy_cache, clock):
        for index in range(5):
            proxy_cache.set(f"github-repos:octocat/r{index}", index, tags=("github", "repositories"))
        sweeper = CacheSweeper(proxy_cache, interval=175)

        clock.advance(1801)
        assert sweeper.run_once() == 0
        assert proxy_cache.repository.count() == 5

        clock.advance(300)
        assert sweeper.run_once() == 5
        assert proxy_cache.repository.count() == 0

    def test_run_once_is_idempotent(self, metadata_cache, clock):
        metadata_cache.set("k", "v")
        clock.advance(3601)
        sweeper = CacheSweeper(metadata_cache, interval=300)
        assert sweeper.run_once() == 1
        assert sweeper.run_once() == 0

    @pytest.mark.asyncio
    async def test_loop_sweeps_periodically(self, metadata_cache, clock):
        metadata_cache.set("k", "v")
        clock.advance(3601)
        sweeper = CacheSweeper(metadata_cache, interval=0.01)
        sweeper.start()
        sweeper.start()
        assert sweeper.running
        await asyncio.sleep(0.05)
        await sweeper.stop()
        assert not sweeper.running
        assert metadata_cache.repository.count() == 0

    @pytest.mark.asyncio
    async def test_failed_sweep_is_retried(self, clock):
        repository = FlakyRepository()
        cache = CacheService.create(repository=repository, policy=CachePolicy.STRICT, ttl=10, clock=clock)
        cache.set("k", "v")
        clock.advance(11)

        sweeper = CacheSweeper(cache, interval=0.01)
        sweeper.start()
        await asyncio.sleep(0.1)
        await sweeper.stop()

        assert repository.sweeps >= 2
        assert repository.count() == 0
