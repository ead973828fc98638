"""HTTP handlers for activity endpoints.

Handlers convert between service results and DTOs (API contracts). They own
HTTP concerns: status codes, Cache-Control headers and turning service
errors into generic, caller-safe messages.
"""

import logging
from collections.abc import Sequence

from fastapi import HTTPException, Response, status

from portfolio_activity.dto import (
    CodingStatsResponse,
    HealthCheckResponse,
    ImageMetadataResponse,
    InvalidateCacheRequest,
    InvalidateCacheResponse,
    ProfileResponse,
    RepositoryResponse,
)
from portfolio_activity.errors import ActivityError
from portfolio_activity.services import ActivityService, CacheSweeper

logger = logging.getLogger(__name__)


class ActivityHandler:
    """HTTP handlers for activity operations.

    This handler delegates business logic to ActivityService
    and handles HTTP-specific concerns like:
    - Converting entities to DTOs
    - Advertising cache freshness to downstream caches
    - Mapping errors to status codes without leaking upstream details
    """

    def __init__(
        self,
        activity_service: ActivityService,
        proxy_max_age: int,
        stale_grace: int,
        metadata_max_age: int,
        sweepers: Sequence[CacheSweeper] = (),
    ) -> None:
        """Initialize the activity handler.

        Args:
            activity_service: The aggregation service (required).
            proxy_max_age: Shared-cache max age for upstream data, in seconds.
            stale_grace: Window in which intermediaries may serve stale data.
            metadata_max_age: Max age for image metadata, in seconds.
            sweepers: Cache sweepers, reported by the health check.
        """
        self._activity = activity_service
        self._proxy_cache_control = (
            f"public, s-maxage={proxy_max_age}, stale-while-revalidate={stale_grace}"
        )
        self._metadata_cache_control = f"public, max-age={metadata_max_age}"
        self._sweepers = tuple(sweepers)

    def _http_error(self, error: Exception, endpoint: str, message: str, context: str = "") -> HTTPException:
        """Log an error with context and build the caller-facing exception."""
        if isinstance(error, ActivityError) and error.status_code < 500:
            logger.warning("%s rejected %s: %s", endpoint, context, error)
            return HTTPException(status_code=error.status_code, detail=error.public_message)

        logger.error("%s failed %s: %s", endpoint, context, error, exc_info=error)
        return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=message)

    async def get_profile(self, response: Response) -> ProfileResponse:
        """Handle GET /api/github/profile requests.

        Raises:
            HTTPException: 500 if the upstream fetch fails
        """
        try:
            profile = await self._activity.fetch_profile()
        except Exception as e:
            raise self._http_error(e, "get-profile", "Failed to fetch GitHub profile data") from e

        response.headers["Cache-Control"] = self._proxy_cache_control
        return ProfileResponse.from_entity(profile)

    async def get_repositories(self, repos: str | None, response: Response) -> list[RepositoryResponse]:
        """Handle GET /api/github/repos requests.

        Args:
            repos: Comma-separated ``owner/name`` list

        Raises:
            HTTPException: 400 for a missing or malformed list, 500 if a
                repository fetch fails
        """
        try:
            repositories = await self._activity.fetch_repositories(repos)
        except Exception as e:
            raise self._http_error(
                e, "get-repositories", "Failed to fetch GitHub repositories data", context=f"repos={repos!r}"
            ) from e

        response.headers["Cache-Control"] = self._proxy_cache_control
        return [RepositoryResponse.from_entity(repository) for repository in repositories]

    async def get_coding_stats(self, range_name: str | None, response: Response) -> CodingStatsResponse:
        """Handle GET /api/coding-stats requests.

        Args:
            range_name: Requested range; unknown values fall back to the default

        Raises:
            HTTPException: 500 if the upstream fetch fails
        """
        try:
            stats = await self._activity.fetch_coding_stats(range_name)
        except Exception as e:
            raise self._http_error(
                e, "get-coding-stats", "Failed to fetch coding stats", context=f"range={range_name!r}"
            ) from e

        response.headers["Cache-Control"] = self._proxy_cache_control
        return CodingStatsResponse.from_entity(stats)

    async def get_image_metadata(self, path: str | None, response: Response) -> ImageMetadataResponse:
        """Handle GET /api/image-metadata requests.

        Args:
            path: Image path relative to the image root

        Raises:
            HTTPException: 400 if path is missing, 404 if the image is not
                found or outside the root, 500 if extraction fails
        """
        if not path:
            logger.warning("get-image-metadata rejected: missing path")
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Image path is required")

        try:
            metadata = await self._activity.fetch_image_metadata(path)
        except Exception as e:
            raise self._http_error(
                e, "get-image-metadata", "Failed to extract image metadata", context=f"path={path!r}"
            ) from e

        response.headers["Cache-Control"] = self._metadata_cache_control
        return ImageMetadataResponse.from_entity(metadata)

    async def invalidate(self, request: InvalidateCacheRequest) -> InvalidateCacheResponse:
        """Handle POST /api/cache/invalidate requests."""
        count = self._activity.invalidate(request.tag)
        return InvalidateCacheResponse(tag=request.tag, deleted_count=count)

    async def health_check(self, response: Response) -> HealthCheckResponse:
        """Handle GET /health requests.

        Responds 503 unless every cache sweeper is running.
        """
        sweeper_running = bool(self._sweepers) and all(sweeper.running for sweeper in self._sweepers)
        if not sweeper_running:
            response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        stats = self._activity.get_stats()
        return HealthCheckResponse(
            status="healthy" if sweeper_running else "unhealthy",
            sweeper_running=sweeper_running,
            cache={name: cache["total_entries"] for name, cache in stats.items()},
        )
