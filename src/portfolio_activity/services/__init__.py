"""Service layer for business logic.

This layer contains the cache policies and the activity aggregation.
Services depend on protocols (interfaces), not concrete implementations,
making them testable and flexible.

Architecture:
    Handler -> Service -> Repository
    (HTTP)  -> (Business) -> (Data Access)
"""

from .activity_service import DEFAULT_STATS_RANGE, STATS_RANGES, ActivityService, normalize_identifiers, resolve_range
from .cache_service import CachePolicy, CacheService, EntryState
from .sweeper import CacheSweeper

__all__ = [
    "ActivityService",
    "CachePolicy",
    "CacheService",
    "CacheSweeper",
    "DEFAULT_STATS_RANGE",
    "EntryState",
    "STATS_RANGES",
    "normalize_identifiers",
    "resolve_range",
]
