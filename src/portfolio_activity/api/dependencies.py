"""Dependency injection configuration for FastAPI app.

Uses FastAPI's app.state pattern for storing service instances.

Pattern:
    - Services stored in app.state during lifespan
    - Dependency functions retrieve from request.app.state
    - Clean separation, no global mutable state
"""

import logging
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Request

from portfolio_activity.config import Settings, configure_logging
from portfolio_activity.handlers import ActivityHandler
from portfolio_activity.repositories import (
    CodingStatsClient,
    GitHubClient,
    MemoryCacheRepository,
    PillowExifReader,
)
from portfolio_activity.services import ActivityService, CachePolicy, CacheService, CacheSweeper

logger = logging.getLogger(__name__)


def get_activity_service(request: Request) -> ActivityService:
    """Dependency injection for ActivityService from app.state.

    Args:
        request: FastAPI Request object

    Returns:
        The ActivityService instance from app.state

    Raises:
        RuntimeError: If service is not initialized
    """
    service = getattr(request.app.state, "activity_service", None)
    if service is None:
        raise RuntimeError("ActivityService not initialized. Check lifespan setup.")
    return service


def get_handler(request: Request) -> ActivityHandler:
    """Dependency injection for ActivityHandler from app.state.

    Args:
        request: FastAPI Request object

    Returns:
        The ActivityHandler instance from app.state

    Raises:
        RuntimeError: If handler is not initialized
    """
    handler = getattr(request.app.state, "activity_handler", None)
    if handler is None:
        raise RuntimeError("ActivityHandler not initialized. Check lifespan setup.")
    return handler


async def _close(resource: object) -> None:
    close = getattr(resource, "close", None)
    if close is not None:
        await close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI app.

    Initializes all layers and stores them in app.state:
    1. Upstream sources (GitHub, coding stats, EXIF reader)
    2. Caches: stale-while-revalidate for upstream data, strict TTL for metadata
    3. Service, one sweeper per cache and handler

    Sources already present in ``app.state.sources`` (set by ``create_app``)
    are used instead of the real clients.

    Raises:
        ConfigError: If required upstream identifiers are missing
    """
    settings: Settings = app.state.settings
    configure_logging(settings.log_level)
    settings.validate_credentials()

    sources = app.state.sources
    github = sources.get("github") or GitHubClient.create(settings)
    coding_stats = sources.get("coding_stats") or CodingStatsClient.create(settings)
    image_reader = sources.get("image_reader") or PillowExifReader()

    proxy_cache = CacheService.create(
        repository=MemoryCacheRepository.create("proxy"),
        policy=CachePolicy.STALE_WHILE_REVALIDATE,
        ttl=settings.proxy_cache_ttl,
        stale_grace=settings.stale_grace,
    )
    metadata_cache = CacheService.create(
        repository=MemoryCacheRepository.create("metadata"),
        policy=CachePolicy.STRICT,
        ttl=settings.metadata_cache_ttl,
    )

    activity_service = ActivityService.create(
        settings=settings,
        github=github,
        coding_stats=coding_stats,
        image_reader=image_reader,
        proxy_cache=proxy_cache,
        metadata_cache=metadata_cache,
    )
    sweepers = (
        CacheSweeper(proxy_cache, interval=settings.proxy_sweep_interval),
        CacheSweeper(metadata_cache, interval=settings.effective_sweep_interval),
    )
    for sweeper in sweepers:
        sweeper.start()

    app.state.activity_service = activity_service
    app.state.activity_handler = ActivityHandler(
        activity_service=activity_service,
        proxy_max_age=int(settings.proxy_cache_ttl),
        stale_grace=settings.stale_grace,
        metadata_max_age=int(settings.metadata_cache_ttl),
        sweepers=sweepers,
    )
    app.state.sweepers = sweepers

    logger.info(
        "Activity service initialized (github=%s, coding stats=%s, image root=%s)",
        settings.github_username,
        settings.coding_stats_provider,
        activity_service.image_root,
    )

    yield

    for sweeper in sweepers:
        await sweeper.stop()
    await proxy_cache.close()
    await metadata_cache.close()
    await _close(github)
    await _close(coding_stats)

    del app.state.activity_handler
    del app.state.activity_service
    del app.state.sweepers
    logger.info("Activity service shut down")


# Type aliases for cleaner dependency injection
HandlerDep = Annotated[ActivityHandler, Depends(get_handler)]
ServiceDep = Annotated[ActivityService, Depends(get_activity_service)]
