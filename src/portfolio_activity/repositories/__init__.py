"""Repository layer for data access.

This layer abstracts external dependencies (GitHub, Wakapi/WakaTime, the
local image tree, cache storage) behind protocol-based interfaces.

The repositories are protocol-based (structural typing), not inheritance-based.
Any class implementing the required methods will satisfy the protocol.
"""

from .coding_stats_client import CodingStatsClient
from .exif_reader import PillowExifReader
from .github_client import GitHubClient
from .memory_cache_repository import MemoryCacheRepository

__all__ = [
    "CodingStatsClient",
    "GitHubClient",
    "MemoryCacheRepository",
    "PillowExifReader",
]
