"""Domain entities for internal representation.

These are pure dataclasses (frozen) used internally by services
and repositories. They are NOT used for API contracts - use DTOs
from the dto package for that.
"""

from .activity import UNKNOWN, CodingStat, ImageMetadata, LanguageShare, Profile, Repository
from .cache_entry import CacheEntryEntity

__all__ = [
    "UNKNOWN",
    "CacheEntryEntity",
    "CodingStat",
    "ImageMetadata",
    "LanguageShare",
    "Profile",
    "Repository",
]
