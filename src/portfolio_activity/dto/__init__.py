"""Data Transfer Objects for API contracts.

These Pydantic models define the external API contract.
They are used for request/response validation and serialization.

Internal domain logic should use entities from the entities package.
"""

from .requests import InvalidateCacheRequest
from .responses import (
    CodingStatsResponse,
    HealthCheckResponse,
    ImageMetadataResponse,
    InvalidateCacheResponse,
    LanguageItem,
    ProfileResponse,
    RepositoryResponse,
)

__all__ = [
    "InvalidateCacheRequest",
    "CodingStatsResponse",
    "HealthCheckResponse",
    "ImageMetadataResponse",
    "InvalidateCacheResponse",
    "LanguageItem",
    "ProfileResponse",
    "RepositoryResponse",
]
