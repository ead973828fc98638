"""Portfolio Activity - cached developer-activity data for a portfolio site.

This package fetches a GitHub profile, repositories with recent commit
counts, coding-time statistics and local photo metadata, validates the
upstream payloads, caches the results and serves them over HTTP.

Layers:
    - protocols: Interface contracts (CacheStore, GitHubSource, ...)
    - repositories: Data access implementations (httpx clients, Pillow, memory store)
    - services: Business logic (cache policies, sweeper, aggregation)
    - handlers: HTTP endpoint handlers
    - dto: Data transfer objects (API contracts)
    - entities: Domain models (internal)

For HTTP API:
    ```python
    from portfolio_activity.api.app import create_app
    ```
"""

from portfolio_activity.config import Settings, get_settings
from portfolio_activity.entities import CacheEntryEntity, CodingStat, ImageMetadata, Profile, Repository
from portfolio_activity.errors import (
    ActivityError,
    BadRequestError,
    ConfigError,
    MetadataExtractionError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)
from portfolio_activity.handlers import ActivityHandler
from portfolio_activity.protocols import CacheStore, CodingStatsSource, GitHubSource, ImageMetadataReader
from portfolio_activity.repositories import CodingStatsClient, GitHubClient, MemoryCacheRepository, PillowExifReader
from portfolio_activity.services import ActivityService, CachePolicy, CacheService, CacheSweeper
from portfolio_activity.utils import WindowQuery, window_since

__all__ = [
    # Configuration
    "Settings",
    "get_settings",
    # Errors
    "ActivityError",
    "BadRequestError",
    "ConfigError",
    "MetadataExtractionError",
    "NotFoundError",
    "UpstreamError",
    "ValidationError",
    # Protocols (interfaces)
    "CacheStore",
    "CodingStatsSource",
    "GitHubSource",
    "ImageMetadataReader",
    # Services (business logic)
    "ActivityService",
    "CachePolicy",
    "CacheService",
    "CacheSweeper",
    # Handlers (HTTP)
    "ActivityHandler",
    # Repositories (data access)
    "CodingStatsClient",
    "GitHubClient",
    "MemoryCacheRepository",
    "PillowExifReader",
    # Entities (domain models)
    "CacheEntryEntity",
    "CodingStat",
    "ImageMetadata",
    "Profile",
    "Repository",
    # Utilities
    "WindowQuery",
    "window_since",
]
