"""Cache service: freshness policies and single-flight loading.

This service wraps a CacheStore (pure storage) with one of two policies:

- ``STALE_WHILE_REVALIDATE``: a stale entry is served immediately while one
  background task refreshes it. Past ``ttl + stale_grace`` the entry counts
  as evicted and is reloaded synchronously.
- ``STRICT``: a stale entry reads as absent and the caller reloads it.

Concurrent misses or refreshes for the same key share one loader task.
Invalidating a tag detaches running loads for matching keys, so their
results are returned to waiting callers but never stored.
There is no lock across keys.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Iterable
from enum import Enum
from functools import partial
from typing import Any

from portfolio_activity.entities import CacheEntryEntity
from portfolio_activity.protocols import CacheStore

logger = logging.getLogger(__name__)

Loader = Callable[[], Awaitable[Any]]


class CachePolicy(str, Enum):
    """How a read past TTL behaves."""

    STALE_WHILE_REVALIDATE = "stale-while-revalidate"
    STRICT = "strict"


class EntryState(str, Enum):
    """Lifecycle state of a single key."""

    ABSENT = "absent"
    FRESH = "fresh"
    STALE = "stale"
    REFRESHING = "refreshing"


class CacheService:
    """Policy layer over a CacheStore.

    Example:
        ```python
        from portfolio_activity.repositories import MemoryCacheRepository
        from portfolio_activity.services import CachePolicy, CacheService

        cache = CacheService.create(
            repository=MemoryCacheRepository.create("proxy"),
            policy=CachePolicy.STALE_WHILE_REVALIDATE,
            ttl=1800,
        )
        profile = await cache.get_or_load("github-profile:octocat", load_profile)
        ```
    """

    def __init__(
        self,
        repository: CacheStore,
        policy: CachePolicy,
        ttl: float,
        stale_grace: float = 0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the cache service.

        Args:
            repository: Storage backend (required).
            policy: Behaviour for reads past TTL.
            ttl: Default time-to-live in seconds.
            stale_grace: Seconds past TTL during which a stale entry may still
                be served under stale-while-revalidate. Ignored under STRICT.
            clock: Monotonic clock in seconds; injectable for tests.
        """
        if stale_grace < 0:
            raise ValueError("Stale grace must not be negative")
        self._repository = repository
        self._policy = policy
        self._ttl = ttl
        self._stale_grace = stale_grace if policy is CachePolicy.STALE_WHILE_REVALIDATE else 0
        self._clock = clock
        self._in_flight: dict[str, asyncio.Task] = {}
        self._in_flight_tags: dict[str, frozenset[str]] = {}
        self._detached: set[asyncio.Task] = set()

    @classmethod
    def create(
        cls,
        repository: CacheStore,
        policy: CachePolicy = CachePolicy.STALE_WHILE_REVALIDATE,
        ttl: float = 1800,
        stale_grace: float = 0,
        clock: Callable[[], float] = time.monotonic,
    ) -> "CacheService":
        """Factory method to create CacheService with sensible defaults."""
        return cls(repository=repository, policy=policy, ttl=ttl, stale_grace=stale_grace, clock=clock)

    def _is_evicted(self, entry: CacheEntryEntity, now: float) -> bool:
        return entry.is_expired(now - self._stale_grace)

    def get(self, key: str) -> CacheEntryEntity | None:
        """Read an entry according to the policy.

        An entry past its TTL (plus the stale grace, under
        ``STALE_WHILE_REVALIDATE``) is evicted and None is returned. A stale
        entry inside the grace window is returned as is; use ``get_or_load``
        to also trigger a refresh.
        """
        entry = self._repository.get(key)
        if entry is None:
            return None
        if self._is_evicted(entry, self._clock()):
            self._repository.delete(key, expected=entry)
            return None
        return entry

    def set(
        self,
        key: str,
        value: Any,
        ttl: float | None = None,
        tags: Iterable[str] = (),
    ) -> CacheEntryEntity:
        """Write a new entry, replacing any entry under the same key."""
        entry = CacheEntryEntity(
            key=key,
            value=value,
            created_at=self._clock(),
            ttl=self._ttl if ttl is None else ttl,
            tags=frozenset(tags),
        )
        self._repository.set(entry)
        return entry

    def invalidate_by_tag(self, tag: str) -> int:
        """Evict every entry carrying ``tag``.

        Loads already running for a tagged key are detached: their waiters
        still get the result, but it is not written back.

        Returns:
            Number of entries deleted
        """
        count = self._repository.invalidate_by_tag(tag)
        for key, tags in list(self._in_flight_tags.items()):
            if tag in tags:
                del self._in_flight_tags[key]
                self._detached.add(self._in_flight.pop(key))
                logger.debug("Detached running load for %s", key)
        logger.info("Invalidated %d cache entries tagged %r", count, tag)
        return count

    def sweep_expired(self) -> int:
        """Evict every entry past its TTL plus the stale grace.

        Returns:
            Number of entries deleted
        """
        return self._repository.sweep_expired(self._clock() - self._stale_grace)

    def state(self, key: str) -> EntryState:
        """Report the lifecycle state of a key without side effects."""
        entry = self._repository.get(key)
        if entry is None or self._is_evicted(entry, self._clock()):
            return EntryState.ABSENT
        if entry.is_fresh(self._clock()):
            return EntryState.FRESH
        if key in self._in_flight:
            return EntryState.REFRESHING
        return EntryState.STALE

    async def get_or_load(
        self,
        key: str,
        loader: Loader,
        ttl: float | None = None,
        tags: Iterable[str] = (),
    ) -> Any:
        """Return the cached value for ``key``, loading it when needed.

        Business logic:
        1. Fresh entry: return it
        2. Stale entry under stale-while-revalidate, still inside the grace
           window: start a background refresh (unless one is running) and
           return the stale value
        3. Otherwise: join the in-flight load for the key, or start one

        Args:
            key: Deterministic cache key
            loader: Zero-argument coroutine function producing the value
            ttl: Override the default TTL
            tags: Tags attached to a newly written entry

        Returns:
            The cached or freshly loaded value

        Raises:
            Exception: Whatever the loader raised, for callers that waited on it
        """
        tags = tuple(tags)
        entry = self._repository.get(key)
        if entry is not None:
            now = self._clock()
            if entry.is_fresh(now):
                logger.debug("Cache hit: %s", key)
                return entry.value
            if not self._is_evicted(entry, now):
                logger.debug("Serving stale entry while refreshing: %s", key)
                self._start_load(key, loader, ttl, tags)
                return entry.value
            self._repository.delete(key, expected=entry)

        logger.debug("Cache miss: %s", key)
        # One cancelled caller must not cancel the load shared with the others.
        return await asyncio.shield(self._start_load(key, loader, ttl, tags))

    def _start_load(self, key: str, loader: Loader, ttl: float | None, tags: tuple[str, ...]) -> asyncio.Task:
        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.create_task(self._load(key, loader, ttl, tags), name=f"cache-load:{key}")
            self._in_flight[key] = task
            self._in_flight_tags[key] = frozenset(tags)
            task.add_done_callback(partial(self._finish_load, key))
        return task

    async def _load(self, key: str, loader: Loader, ttl: float | None, tags: tuple[str, ...]) -> Any:
        value = await loader()
        if self._in_flight.get(key) is asyncio.current_task():
            self.set(key, value, ttl=ttl, tags=tags)
        else:
            logger.debug("Discarding result of detached load for %s", key)
        return value

    def _finish_load(self, key: str, task: asyncio.Task) -> None:
        self._detached.discard(task)
        if self._in_flight.get(key) is task:
            del self._in_flight[key]
            del self._in_flight_tags[key]
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.warning("Cache load failed for %s: %s", key, error)

    @property
    def in_flight(self) -> int:
        """Number of loads currently running."""
        return len(self._in_flight)

    @property
    def policy(self) -> CachePolicy:
        """Get the read policy."""
        return self._policy

    @property
    def ttl(self) -> float:
        """Get the default TTL in seconds."""
        return self._ttl

    @property
    def repository(self) -> CacheStore:
        """Get the underlying repository (for testing)."""
        return self._repository

    def get_stats(self) -> dict:
        """Get cache statistics.

        Returns:
            Dictionary with cache statistics
        """
        return {
            "policy": self._policy.value,
            "ttl": self._ttl,
            "stale_grace": self._stale_grace,
            "total_entries": self._repository.count(),
            "in_flight": len(self._in_flight),
        }

    async def close(self) -> None:
        """Cancel loads still running at shutdown."""
        tasks = [*self._in_flight.values(), *self._detached]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
