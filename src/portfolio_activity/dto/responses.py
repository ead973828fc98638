"""Response DTOs for API endpoints."""

from pydantic import BaseModel, Field

from portfolio_activity.entities import CodingStat, ImageMetadata, Profile, Repository


class ProfileResponse(BaseModel):
    """Response DTO for the GitHub profile."""

    name: str = Field(..., description="Display name (falls back to the handle)")
    handle: str = Field(..., description="GitHub login")
    avatar_url: str = Field(..., description="Avatar image URL")
    location: str | None = Field(None, description="Self-reported location")
    public_repo_count: int = Field(..., description="Number of public repositories", ge=0)
    follower_count: int = Field(..., description="Number of followers", ge=0)

    @classmethod
    def from_entity(cls, profile: Profile) -> "ProfileResponse":
        return cls(
            name=profile.name,
            handle=profile.handle,
            avatar_url=profile.avatar_url,
            location=profile.location,
            public_repo_count=profile.public_repo_count,
            follower_count=profile.follower_count,
        )


class RepositoryResponse(BaseModel):
    """Response DTO for a single public repository."""

    id: int
    name: str
    full_name: str
    description: str | None = None
    primary_language: str | None = None
    star_count: int = Field(..., ge=0)
    fork_count: int = Field(..., ge=0)
    url: str
    updated_at: str = Field(..., description="ISO-8601 timestamp of the last update")
    topics: list[str] = Field(default_factory=list)
    is_private: bool = False
    recent_commit_count: int | None = Field(
        None,
        description="Commits in the trailing window; null when the count could not be fetched",
        ge=0,
    )

    @classmethod
    def from_entity(cls, repository: Repository) -> "RepositoryResponse":
        return cls(
            id=repository.id,
            name=repository.name,
            full_name=repository.full_name,
            description=repository.description,
            primary_language=repository.primary_language,
            star_count=repository.star_count,
            fork_count=repository.fork_count,
            url=repository.url,
            updated_at=repository.updated_at,
            topics=list(repository.topics),
            is_private=repository.is_private,
            recent_commit_count=repository.recent_commit_count,
        )


class LanguageItem(BaseModel):
    """Single language row (in languages array)."""

    name: str
    percent: float = Field(..., ge=0.0)
    total_time_text: str = Field(..., description="Human readable time, e.g. '3 hrs 12 mins'")


class CodingStatsResponse(BaseModel):
    """Response DTO for coding-time statistics."""

    languages: list[LanguageItem] = Field(
        default_factory=list,
        description="Top languages (at most five, highest share first)",
    )
    total_time: str = Field(..., description="Human readable total for the range")
    range: str = Field(..., description="The range actually used")

    @classmethod
    def from_entity(cls, stats: CodingStat) -> "CodingStatsResponse":
        return cls(
            languages=[
                LanguageItem(name=lang.name, percent=lang.percent, total_time_text=lang.total_time_text)
                for lang in stats.languages
            ],
            total_time=stats.total_time_text,
            range=stats.range,
        )


class ImageMetadataResponse(BaseModel):
    """Response DTO for photo metadata. Every field is always present."""

    camera: str
    lens: str
    aperture: str
    shutter_speed: str
    iso: str
    focal_length: str
    date_taken: str
    location: str
    dimensions: str

    @classmethod
    def from_entity(cls, metadata: ImageMetadata) -> "ImageMetadataResponse":
        return cls(
            camera=metadata.camera,
            lens=metadata.lens,
            aperture=metadata.aperture,
            shutter_speed=metadata.shutter_speed,
            iso=metadata.iso,
            focal_length=metadata.focal_length,
            date_taken=metadata.date_taken,
            location=metadata.location,
            dimensions=metadata.dimensions,
        )


class InvalidateCacheResponse(BaseModel):
    """Response DTO for tag invalidation."""

    tag: str
    deleted_count: int = Field(..., ge=0)


class HealthCheckResponse(BaseModel):
    """Response DTO for health check."""

    status: str = Field(..., description="Health status: 'healthy' or 'unhealthy'")
    sweeper_running: bool = Field(..., description="Whether every cache sweeper is active")
    cache: dict = Field(default_factory=dict, description="Entry counts per cache")
