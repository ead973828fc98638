"""Activity aggregation service.

This service orchestrates upstream fetches for the portfolio's activity
widgets: GitHub profile and repositories (with recent commit counts),
coding-time statistics and local photo metadata. Results are validated,
normalized and cached through ``CacheService``.
"""

import asyncio
import logging
import posixpath
import re
from collections.abc import Awaitable, Callable, Iterable
from datetime import datetime, timezone
from functools import partial
from pathlib import Path
from typing import Any

from portfolio_activity.config import Settings
from portfolio_activity.entities import CodingStat, ImageMetadata, LanguageShare, Profile, Repository
from portfolio_activity.errors import BadRequestError, NotFoundError, UpstreamError
from portfolio_activity.protocols import CodingStatsSource, GitHubSource, ImageMetadataReader
from portfolio_activity.schemas import CodingStatsPayload, GitHubRepoPayload, GitHubUserPayload, validate
from portfolio_activity.services.cache_service import CacheService
from portfolio_activity.utils import WindowQuery

logger = logging.getLogger(__name__)

STATS_RANGES = ("last_7_days", "last_30_days", "last_6_months", "last_year")
DEFAULT_STATS_RANGE = STATS_RANGES[0]
TOP_LANGUAGES = 5
DEFAULT_TOTAL_TIME = "Total coding time"

PROFILE_TAGS = ("github", "profile")
REPOSITORY_TAGS = ("github", "repositories")
CODING_STATS_TAG = "coding-stats"

_IDENTIFIER = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")


def resolve_range(value: str | None) -> str:
    """Map a requested range onto a supported one, defaulting to the shortest."""
    if value in STATS_RANGES:
        return value
    if value:
        logger.debug("Unknown stats range %r, using %s", value, DEFAULT_STATS_RANGE)
    return DEFAULT_STATS_RANGE


def normalize_identifiers(identifiers: str | Iterable[str] | None) -> list[str]:
    """Clean a repository identifier list.

    Accepts a comma-separated string or an iterable. Items are trimmed,
    blanks dropped and duplicates removed, keeping first-seen order.

    Raises:
        BadRequestError: If nothing is left or an item is not ``owner/name``
    """
    if identifiers is None:
        raise BadRequestError("Missing repos parameter")
    if isinstance(identifiers, str):
        identifiers = identifiers.split(",")

    cleaned: list[str] = []
    for item in identifiers:
        item = item.strip()
        if not item or item in cleaned:
            continue
        if not _IDENTIFIER.match(item) or ".." in item:
            raise BadRequestError(f"Invalid repository identifier: {item!r}")
        cleaned.append(item)

    if not cleaned:
        raise BadRequestError("Missing repos parameter")
    return cleaned


async def _gather_or_cancel(*aws: Awaitable[Any]) -> list[Any]:
    """Run awaitables concurrently; on the first failure cancel the rest."""
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    except Exception:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class ActivityService:
    """Aggregator for upstream developer-activity data.

    Depends on protocols, not concrete clients, and receives both caches
    as explicit dependencies:

    - ``proxy_cache``: stale-while-revalidate cache for upstream data
    - ``metadata_cache``: strict-TTL cache for locally derived metadata

    Example:
        ```python
        service = ActivityService.create(
            settings=settings,
            github=GitHubClient.create(settings),
            coding_stats=CodingStatsClient.create(settings),
            image_reader=PillowExifReader(),
            proxy_cache=proxy_cache,
            metadata_cache=metadata_cache,
        )
        repos = await service.fetch_repositories(["octocat/Hello-World"])
        ```
    """

    def __init__(
        self,
        github: GitHubSource,
        coding_stats: CodingStatsSource,
        image_reader: ImageMetadataReader,
        proxy_cache: CacheService,
        metadata_cache: CacheService,
        github_username: str,
        coding_stats_username: str,
        image_root: str | Path,
        upstream_timeout: float = 10.0,
        commit_window_days: int = 30,
        commit_page_size: int = 100,
        now: Callable[[], datetime] = partial(datetime.now, timezone.utc),
    ) -> None:
        """Initialize the activity service.

        Args:
            github: GitHub API source (required).
            coding_stats: Wakapi/WakaTime stats source (required).
            image_reader: Photo metadata reader (required).
            proxy_cache: Cache for upstream-derived data.
            metadata_cache: Cache for local image metadata.
            github_username: Handle used by ``fetch_profile``.
            coding_stats_username: User on the stats provider.
            image_root: Directory that image paths are resolved against.
            upstream_timeout: Upper bound in seconds for each upstream call.
            commit_window_days: Trailing window for recent commit counts.
            commit_page_size: Page size of the commit listing.
            now: Wall clock, injectable for tests.
        """
        self._github = github
        self._coding_stats = coding_stats
        self._image_reader = image_reader
        self._proxy_cache = proxy_cache
        self._metadata_cache = metadata_cache
        self._github_username = github_username
        self._coding_stats_username = coding_stats_username
        self._image_root = Path(image_root).resolve()
        self._timeout = upstream_timeout
        self._commit_window_days = commit_window_days
        self._commit_page_size = commit_page_size
        self._now = now

    @classmethod
    def create(
        cls,
        settings: Settings,
        github: GitHubSource,
        coding_stats: CodingStatsSource,
        image_reader: ImageMetadataReader,
        proxy_cache: CacheService,
        metadata_cache: CacheService,
    ) -> "ActivityService":
        """Factory method wiring the service from settings."""
        return cls(
            github=github,
            coding_stats=coding_stats,
            image_reader=image_reader,
            proxy_cache=proxy_cache,
            metadata_cache=metadata_cache,
            github_username=settings.github_username or "",
            coding_stats_username=settings.coding_stats_handle or "",
            image_root=settings.image_root,
            upstream_timeout=settings.upstream_timeout,
            commit_window_days=settings.commit_window_days,
            commit_page_size=settings.commit_page_size,
        )

    async def _bounded(self, awaitable: Awaitable[Any], description: str) -> Any:
        try:
            return await asyncio.wait_for(awaitable, timeout=self._timeout)
        except asyncio.TimeoutError as e:
            raise UpstreamError(f"{description} timed out after {self._timeout}s") from e

    # Profile

    async def fetch_profile(self, handle: str | None = None) -> Profile:
        """Fetch the normalized GitHub profile.

        Args:
            handle: GitHub login; defaults to the configured user

        Returns:
            Profile (possibly stale while a refresh runs)

        Raises:
            UpstreamError: If the upstream call fails or its payload is invalid
        """
        handle = handle or self._github_username
        return await self._proxy_cache.get_or_load(
            f"github-profile:{handle}",
            partial(self._load_profile, handle),
            tags=PROFILE_TAGS,
        )

    async def _load_profile(self, handle: str) -> Profile:
        raw = await self._bounded(self._github.get_user(handle), f"GitHub user {handle}")
        user = validate(raw, GitHubUserPayload)
        return Profile(
            name=user.name or user.login,
            handle=user.login,
            avatar_url=user.avatar_url,
            location=user.location,
            public_repo_count=user.public_repos or 0,
            follower_count=user.followers or 0,
        )

    # Repositories

    async def fetch_repositories(self, identifiers: str | Iterable[str] | None) -> list[Repository]:
        """Fetch public repositories with their recent commit counts.

        The result follows the caller's order. Private repositories are
        dropped. A failed commit count leaves ``recent_commit_count`` as None;
        a failed repository fetch fails the whole call.

        Args:
            identifiers: ``owner/name`` list or comma-separated string

        Returns:
            List of Repository, one per public identifier

        Raises:
            BadRequestError: If the list is empty or malformed
            UpstreamError: If any repository fetch fails
        """
        ordered = normalize_identifiers(identifiers)
        key_ids = sorted(ordered)
        pairs = await self._proxy_cache.get_or_load(
            f"github-repos:{','.join(key_ids)}",
            partial(self._load_repositories, key_ids),
            tags=REPOSITORY_TAGS,
        )
        by_identifier = dict(pairs)
        return [by_identifier[item] for item in ordered if item in by_identifier]

    async def _load_repositories(self, identifiers: list[str]) -> tuple[tuple[str, Repository], ...]:
        window = WindowQuery.for_days(
            self._commit_window_days,
            now=self._now(),
            page_size=self._commit_page_size,
        )
        repositories = await _gather_or_cancel(
            *(self._fetch_repository(identifier, window) for identifier in identifiers)
        )
        return tuple(
            (identifier, repository)
            for identifier, repository in zip(identifiers, repositories)
            if not repository.is_private
        )

    async def _fetch_repository(self, identifier: str, window: WindowQuery) -> Repository:
        try:
            raw, recent_commits = await _gather_or_cancel(
                self._bounded(self._github.get_repository(identifier), f"GitHub repository {identifier}"),
                self._count_recent_commits(identifier, window),
            )
            payload = validate(raw, GitHubRepoPayload)
        except UpstreamError as e:
            logger.warning("Repository fetch failed for %s: %s", identifier, e)
            raise

        return Repository(
            id=payload.id,
            name=payload.name,
            full_name=payload.full_name,
            description=payload.description,
            primary_language=payload.language,
            star_count=payload.stargazers_count,
            fork_count=payload.forks_count,
            url=payload.html_url,
            updated_at=payload.updated_at,
            topics=tuple(payload.topics),
            is_private=payload.private,
            recent_commit_count=recent_commits,
        )

    async def _count_recent_commits(self, identifier: str, window: WindowQuery) -> int | None:
        """Best-effort commit count; any failure yields None."""
        try:
            commits = await self._bounded(
                self._github.list_commits(identifier, window),
                f"GitHub commits {identifier}",
            )
        except Exception as e:
            logger.warning("Recent commit count unavailable for %s: %s", identifier, e)
            return None
        return len(commits) if isinstance(commits, list) else 0

    # Coding stats

    async def fetch_coding_stats(self, range_name: str | None = None, handle: str | None = None) -> CodingStat:
        """Fetch the top languages for a lookback range.

        Args:
            range_name: One of STATS_RANGES; anything else means the default
            handle: Provider username; defaults to the configured user

        Returns:
            CodingStat with at most five languages, highest share first

        Raises:
            UpstreamError: If the upstream call fails or its payload is invalid
        """
        range_name = resolve_range(range_name)
        handle = handle or self._coding_stats_username
        provider = self._coding_stats.provider
        return await self._proxy_cache.get_or_load(
            f"coding-stats:{provider}:{handle}:{range_name}",
            partial(self._load_coding_stats, handle, range_name),
            tags=(CODING_STATS_TAG, provider),
        )

    async def _load_coding_stats(self, handle: str, range_name: str) -> CodingStat:
        provider = self._coding_stats.provider
        raw = await self._bounded(
            self._coding_stats.get_stats(handle, range_name),
            f"{provider} stats {handle}/{range_name}",
        )
        data = validate(raw, CodingStatsPayload).data

        ranked = sorted(data.languages, key=lambda language: language.percent, reverse=True)
        languages = tuple(
            LanguageShare(name=language.name, percent=float(language.percent), total_time_text=language.text)
            for language in ranked[:TOP_LANGUAGES]
        )

        totals = [data.human_readable_total, data.human_readable_total_including_other_language]
        if provider == "wakatime":
            totals.reverse()
        total_time = next((total for total in totals if total), DEFAULT_TOTAL_TIME)

        return CodingStat(languages=languages, total_time_text=total_time, range=range_name)

    # Image metadata

    @property
    def image_root(self) -> Path:
        return self._image_root

    def _normalize_image_path(self, path: str | None) -> str:
        """Lexically canonicalize ``path`` relative to the image root.

        No file system access happens here.

        Raises:
            NotFoundError: If the path is empty or escapes the root
        """
        if not path or "\x00" in path:
            raise NotFoundError(f"Invalid image path: {path!r}")
        relative = posixpath.normpath(path.replace("\\", "/").lstrip("/"))
        if relative in (".", "..") or relative.startswith("../"):
            raise NotFoundError(f"Image path escapes root: {path!r}")
        return relative

    def _locate_image(self, relative: str) -> Path:
        """Resolve symlinks and confirm the file exists inside the root."""
        resolved = (self._image_root / relative).resolve()
        if not resolved.is_relative_to(self._image_root):
            raise NotFoundError(f"Image path escapes root: {relative!r}")
        if not resolved.is_file():
            raise NotFoundError(f"Image not found: {relative!r}")
        return resolved

    async def fetch_image_metadata(self, path: str | None) -> ImageMetadata:
        """Extract display metadata for an image under the image root.

        Args:
            path: Path relative to the image root (a leading "/" is allowed)

        Returns:
            ImageMetadata with "Unknown" for unresolvable fields

        Raises:
            NotFoundError: If the file is missing or outside the root
            MetadataExtractionError: If the file cannot be decoded
        """
        relative = self._normalize_image_path(path)
        return await self._metadata_cache.get_or_load(
            f"image-metadata:{relative}",
            partial(self._load_image_metadata, relative),
        )

    def _read_image(self, relative: str) -> ImageMetadata:
        return self._image_reader.read(self._locate_image(relative))

    async def _load_image_metadata(self, relative: str) -> ImageMetadata:
        return await asyncio.to_thread(self._read_image, relative)

    # Cache control

    def invalidate(self, tag: str) -> int:
        """Evict every cached entry carrying ``tag`` from both caches.

        Returns:
            Number of entries deleted
        """
        return self._proxy_cache.invalidate_by_tag(tag) + self._metadata_cache.invalidate_by_tag(tag)

    def get_stats(self) -> dict:
        """Get statistics for both caches."""
        return {
            "proxy_cache": self._proxy_cache.get_stats(),
            "metadata_cache": self._metadata_cache.get_stats(),
        }
