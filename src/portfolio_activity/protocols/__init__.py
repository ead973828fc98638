"""Protocol interfaces for swappable implementations.

This package contains protocol definitions using structural typing.
Protocols enable:
- Easy swapping of implementations (in-memory store -> Redis, Wakapi -> WakaTime)
- Unit testing with fake implementations
- Clear separation of concerns
"""

from .cache_store import CacheStore
from .sources import CodingStatsSource, GitHubSource, ImageMetadataReader

__all__ = [
    "CacheStore",
    "CodingStatsSource",
    "GitHubSource",
    "ImageMetadataReader",
]
