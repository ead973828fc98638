"""Shared fixtures and in-memory fakes for the activity service tests."""

import asyncio
from datetime import datetime, timezone
from pathlib import Path

import pytest

from portfolio_activity.config import Settings
from portfolio_activity.entities import ImageMetadata
from portfolio_activity.errors import UpstreamError
from portfolio_activity.repositories import MemoryCacheRepository
from portfolio_activity.services import ActivityService, CachePolicy, CacheService

NOW = datetime(2024, 3, 31, 12, 0, tzinfo=timezone.utc)


class Hang:
    """Sentinel: the fake call never completes."""


def repo_payload(full_name: str, **overrides) -> dict:
    owner, name = full_name.split("/")
    payload = {
        "id": abs(hash(full_name)) % 100000,
        "name": name,
        "full_name": full_name,
        "description": f"{name} project",
        "language": "Python",
        "stargazers_count": 10,
        "forks_count": 2,
        "html_url": f"https://github.com/{full_name}",
        "updated_at": "2024-03-01T10:00:00Z",
        "topics": ["portfolio"],
        "private": False,
        "owner": {"login": owner},
    }
    payload.update(overrides)
    return payload


def user_payload(**overrides) -> dict:
    payload = {
        "login": "octocat",
        "name": "The Octocat",
        "avatar_url": "https://avatars.githubusercontent.com/u/583231",
        "location": "San Francisco",
        "public_repos": 8,
        "followers": 120,
    }
    payload.update(overrides)
    return payload


def stats_payload(languages: list[tuple[str, float]], **data) -> dict:
    return {
        "data": {
            "languages": [
                {"name": name, "percent": percent, "text": f"{int(percent)} mins", "total_seconds": percent * 60}
                for name, percent in languages
            ],
            "human_readable_total": "5 hrs 3 mins",
            "human_readable_total_including_other_language": "6 hrs",
            **data,
        }
    }


async def _respond(value):
    if isinstance(value, Hang):
        await asyncio.sleep(3600)
    if isinstance(value, BaseException):
        raise value
    return value


class FakeGitHub:
    """In-memory GitHubSource recording every call."""

    def __init__(self, users=None, repos=None, commits=None, delay: float = 0) -> None:
        self.users = users or {}
        self.repos = repos or {}
        self.commits = commits or {}
        self.delay = delay
        self.calls: list[tuple[str, str]] = []
        self.windows = []

    async def get_user(self, username):
        self.calls.append(("user", username))
        await asyncio.sleep(self.delay)
        return await _respond(self.users.get(username, UpstreamError(f"GitHub API error: 404 for {username}")))

    async def get_repository(self, full_name):
        self.calls.append(("repo", full_name))
        await asyncio.sleep(self.delay)
        return await _respond(self.repos.get(full_name, UpstreamError(f"GitHub API error: 404 for {full_name}")))

    async def list_commits(self, full_name, window):
        self.calls.append(("commits", full_name))
        self.windows.append(window)
        await asyncio.sleep(self.delay)
        return await _respond(self.commits.get(full_name, []))

    def count(self, kind: str) -> int:
        return sum(1 for call_kind, _ in self.calls if call_kind == kind)


class FakeCodingStats:
    """In-memory CodingStatsSource."""

    def __init__(self, payload=None, provider: str = "wakapi") -> None:
        self.payload = payload if payload is not None else stats_payload([("Python", 60.0), ("Go", 40.0)])
        self._provider = provider
        self.calls: list[tuple[str, str]] = []

    @property
    def provider(self) -> str:
        return self._provider

    async def get_stats(self, username, range_name):
        self.calls.append((username, range_name))
        return await _respond(self.payload)


class FakeImageReader:
    """ImageMetadataReader returning a fixed camera name."""

    def __init__(self) -> None:
        self.paths: list[Path] = []

    def read(self, path: Path) -> ImageMetadata:
        self.paths.append(path)
        return ImageMetadata(camera="Fujifilm X100V", dimensions="64 × 48")


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_settings(tmp_path: Path, **overrides) -> Settings:
    values = {
        "github_username": "octocat",
        "github_token": None,
        "coding_stats_provider": "wakapi",
        "wakapi_username": "octo",
        "wakatime_username": None,
        "wakatime_api_key": None,
        "image_root": str(tmp_path),
        "proxy_cache_ttl": 1800,
        "stale_grace": 300,
        "metadata_cache_ttl": 3600,
        "sweep_interval": None,
        "upstream_timeout": 0.2,
        "commit_window_days": 30,
        "commit_page_size": 100,
    }
    values.update(overrides)
    return Settings(**values)


async def drain(cache: CacheService) -> None:
    """Let background cache loads finish."""
    for _ in range(100):
        if not cache.in_flight:
            return
        await asyncio.sleep(0.01)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def github() -> FakeGitHub:
    return FakeGitHub(
        users={"octocat": user_payload()},
        repos={
            "octocat/alpha": repo_payload("octocat/alpha"),
            "octocat/beta": repo_payload("octocat/beta", language=None, description=None),
        },
        commits={
            "octocat/alpha": [{"sha": "a1"}, {"sha": "a2"}, {"sha": "a3"}],
            "octocat/beta": [],
        },
    )


@pytest.fixture
def coding_stats() -> FakeCodingStats:
    return FakeCodingStats()


@pytest.fixture
def image_reader() -> FakeImageReader:
    return FakeImageReader()


@pytest.fixture
def proxy_cache(clock) -> CacheService:
    return CacheService.create(
        repository=MemoryCacheRepository.create("proxy"),
        policy=CachePolicy.STALE_WHILE_REVALIDATE,
        ttl=1800,
        stale_grace=300,
        clock=clock,
    )


@pytest.fixture
def metadata_cache(clock) -> CacheService:
    return CacheService.create(
        repository=MemoryCacheRepository.create("metadata"),
        policy=CachePolicy.STRICT,
        ttl=3600,
        clock=clock,
    )


@pytest.fixture
def image_root(tmp_path) -> Path:
    root = tmp_path / "public"
    (root / "photos").mkdir(parents=True)
    (root / "photos" / "bridge.jpg").write_bytes(b"jpeg")
    return root


@pytest.fixture
def service(github, coding_stats, image_reader, proxy_cache, metadata_cache, image_root) -> ActivityService:
    return ActivityService(
        github=github,
        coding_stats=coding_stats,
        image_reader=image_reader,
        proxy_cache=proxy_cache,
        metadata_cache=metadata_cache,
        github_username="octocat",
        coding_stats_username="octo",
        image_root=image_root,
        upstream_timeout=0.2,
        commit_window_days=30,
        commit_page_size=100,
        now=lambda: NOW,
    )
