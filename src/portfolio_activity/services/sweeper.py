"""Periodic eviction of expired entries from a strict-TTL cache."""

import asyncio
import logging

from portfolio_activity.services.cache_service import CacheService

logger = logging.getLogger(__name__)


class CacheSweeper:
    """Background task that calls ``sweep_expired`` on a fixed interval.

    Keys for local metadata grow with every distinct requested path, so
    expired entries are purged even if nobody reads them again. A failed
    sweep is logged and retried on the next tick; it never stops the loop.
    """

    def __init__(self, cache: CacheService, interval: float) -> None:
        if interval <= 0:
            raise ValueError("Sweep interval must be positive")
        self._cache = cache
        self._interval = interval
        self._task: asyncio.Task | None = None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def run_once(self) -> int:
        """Sweep immediately.

        Returns:
            Number of entries removed (0 if the sweep failed)
        """
        try:
            removed = self._cache.sweep_expired()
        except Exception:
            logger.exception("Cache sweep failed; retrying in %ss", self._interval)
            return 0
        if removed:
            logger.debug("Swept %d expired cache entries", removed)
        return removed

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            self.run_once()

    def start(self) -> None:
        """Start the sweep loop on the running event loop (idempotent)."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="cache-sweeper")
        logger.info("Cache sweeper started (interval %ss)", self._interval)

    async def stop(self) -> None:
        """Cancel the sweep loop and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Cache sweeper stopped")
