"""Activity domain entities.

These are the normalized shapes produced from upstream payloads. They are
created on every cache refresh and live only inside cache entries.
"""

from dataclasses import dataclass, field

UNKNOWN = "Unknown"


@dataclass(frozen=True)
class Profile:
    """Normalized GitHub user identity."""

    name: str
    handle: str
    avatar_url: str
    location: str | None
    public_repo_count: int
    follower_count: int


@dataclass(frozen=True)
class Repository:
    """Normalized GitHub repository.

    Attributes:
        recent_commit_count: Commits inside the trailing window, or None when
            the best-effort commit lookup failed
    """

    id: int
    name: str
    full_name: str
    description: str | None
    primary_language: str | None
    star_count: int
    fork_count: int
    url: str
    updated_at: str
    topics: tuple[str, ...] = ()
    is_private: bool = False
    recent_commit_count: int | None = None


@dataclass(frozen=True)
class LanguageShare:
    """Share of coding time spent in one language."""

    name: str
    percent: float
    total_time_text: str


@dataclass(frozen=True)
class CodingStat:
    """Top languages for a lookback range, sorted by percent descending."""

    languages: tuple[LanguageShare, ...]
    total_time_text: str
    range: str


@dataclass(frozen=True)
class ImageMetadata:
    """Display-ready photo metadata.

    Every field is a string. Unresolvable values hold ``UNKNOWN`` so that
    consumers never deal with missing keys.
    """

    camera: str = UNKNOWN
    lens: str = UNKNOWN
    aperture: str = UNKNOWN
    shutter_speed: str = UNKNOWN
    iso: str = UNKNOWN
    focal_length: str = UNKNOWN
    date_taken: str = UNKNOWN
    location: str = UNKNOWN
    dimensions: str = UNKNOWN
