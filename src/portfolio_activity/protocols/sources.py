"""Upstream source protocols.

The aggregator depends on these interfaces rather than on httpx or Pillow
directly, so tests can pass in-memory fakes.
"""

from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from portfolio_activity.entities import ImageMetadata
from portfolio_activity.utils import WindowQuery


@runtime_checkable
class GitHubSource(Protocol):
    """Protocol for the GitHub REST API."""

    async def get_user(self, username: str) -> Any:
        """Fetch the raw user payload.

        Raises:
            UpstreamError: On network failure, timeout or non-success status
        """
        ...

    async def get_repository(self, full_name: str) -> Any:
        """Fetch the raw repository payload for ``owner/name``.

        Raises:
            UpstreamError: On network failure, timeout or non-success status
        """
        ...

    async def list_commits(self, full_name: str, window: WindowQuery) -> Any:
        """Fetch the raw commit listing inside a trailing window.

        Raises:
            UpstreamError: On network failure, timeout or non-success status
        """
        ...


@runtime_checkable
class CodingStatsSource(Protocol):
    """Protocol for Wakapi/WakaTime compatible stats APIs."""

    @property
    def provider(self) -> str:
        """Short provider name, used in cache keys and tags."""
        ...

    async def get_stats(self, username: str, range_name: str) -> Any:
        """Fetch the raw stats payload for a range.

        Raises:
            UpstreamError: On network failure, timeout or non-success status
        """
        ...


@runtime_checkable
class ImageMetadataReader(Protocol):
    """Protocol for reading embedded photo metadata."""

    def read(self, path: Path) -> ImageMetadata:
        """Extract metadata from an image file.

        Blocking; callers run it off the event loop.

        Raises:
            MetadataExtractionError: If the file cannot be decoded
        """
        ...
