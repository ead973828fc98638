from typing import Any

from fastapi import APIRouter, FastAPI, Query, Response
from fastapi.middleware.cors import CORSMiddleware

from portfolio_activity.api.dependencies import HandlerDep, lifespan
from portfolio_activity.config import Settings, get_settings
from portfolio_activity.dto import (
    CodingStatsResponse,
    HealthCheckResponse,
    ImageMetadataResponse,
    InvalidateCacheRequest,
    InvalidateCacheResponse,
    ProfileResponse,
    RepositoryResponse,
)
from portfolio_activity.protocols import CodingStatsSource, GitHubSource, ImageMetadataReader

router = APIRouter()


@router.get("/")
async def root() -> dict[str, Any]:
    """Root endpoint with API information."""
    return {
        "name": "Portfolio Activity API",
        "version": "0.1.0",
        "description": "Cached GitHub, coding-time and photo metadata for a portfolio site",
        "endpoints": {
            "profile": "/api/github/profile",
            "repositories": "/api/github/repos?repos=owner/name,...",
            "coding_stats": "/api/coding-stats?range=last_7_days",
            "image_metadata": "/api/image-metadata?path=...",
            "health": "/health",
            "docs": "/docs",
        },
    }


@router.get("/health", response_model=HealthCheckResponse)
async def health(handler: HandlerDep, response: Response) -> HealthCheckResponse:
    """Health check endpoint."""
    return await handler.health_check(response)


@router.get("/api/github/profile", response_model=ProfileResponse)
async def get_profile(handler: HandlerDep, response: Response) -> ProfileResponse:
    """Get the configured GitHub profile."""
    return await handler.get_profile(response)


@router.get("/api/github/repos", response_model=list[RepositoryResponse])
async def get_repositories(
    handler: HandlerDep,
    response: Response,
    repos: str | None = Query(None, description="Comma-separated owner/name list"),
) -> list[RepositoryResponse]:
    """Get public repositories with recent commit counts, in request order."""
    return await handler.get_repositories(repos, response)


@router.get("/api/coding-stats", response_model=CodingStatsResponse)
async def get_coding_stats(
    handler: HandlerDep,
    response: Response,
    range_name: str | None = Query(None, alias="range", description="Lookback range"),
) -> CodingStatsResponse:
    """Get top languages for a lookback range."""
    return await handler.get_coding_stats(range_name, response)


@router.get("/api/image-metadata", response_model=ImageMetadataResponse)
async def get_image_metadata(
    handler: HandlerDep,
    response: Response,
    path: str | None = Query(None, description="Image path relative to the image root"),
) -> ImageMetadataResponse:
    """Get display metadata for a local photo."""
    return await handler.get_image_metadata(path, response)


@router.post("/api/cache/invalidate", response_model=InvalidateCacheResponse)
async def invalidate_cache(handler: HandlerDep, request: InvalidateCacheRequest) -> InvalidateCacheResponse:
    """Bulk-expire every cached entry carrying a tag."""
    return await handler.invalidate(request)


def create_app(
    settings: Settings | None = None,
    github: GitHubSource | None = None,
    coding_stats: CodingStatsSource | None = None,
    image_reader: ImageMetadataReader | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Settings to use; defaults to the environment.
        github: Replacement GitHub source (tests).
        coding_stats: Replacement coding stats source (tests).
        image_reader: Replacement image metadata reader (tests).
    """
    app = FastAPI(
        title="Portfolio Activity API",
        description="Cached GitHub, coding-time and photo metadata for a portfolio site",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings or get_settings()
    app.state.sources = {
        "github": github,
        "coding_stats": coding_stats,
        "image_reader": image_reader,
    }

    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "portfolio_activity.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
