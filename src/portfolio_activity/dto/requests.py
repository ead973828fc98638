"""Request DTOs for API endpoints."""

from pydantic import BaseModel, Field


class InvalidateCacheRequest(BaseModel):
    """Request DTO for bulk-expiring a data domain."""

    tag: str = Field(
        ...,
        description="Cache tag to invalidate (e.g. 'github', 'repositories', 'coding-stats')",
        min_length=1,
    )
