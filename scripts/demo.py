#!/usr/bin/env python3
"""
Demo script for the portfolio activity service.

Fetches the configured GitHub profile, a few repositories and coding stats
against the live APIs, twice, to show the second round served from cache.

Usage:
    GITHUB_USERNAME=octocat WAKAPI_USERNAME=octo python scripts/demo.py octocat/Hello-World octocat/Spoon-Knife
"""

import asyncio
import sys
import time

from portfolio_activity import (
    ActivityService,
    CachePolicy,
    CacheService,
    CodingStatsClient,
    GitHubClient,
    MemoryCacheRepository,
    PillowExifReader,
    UpstreamError,
    get_settings,
)


def print_section(title: str) -> None:
    """Print a section header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


async def run(identifiers: list[str]) -> None:
    settings = get_settings()
    settings.validate_credentials()

    github = GitHubClient.create(settings)
    coding_stats = CodingStatsClient.create(settings)
    service = ActivityService.create(
        settings=settings,
        github=github,
        coding_stats=coding_stats,
        image_reader=PillowExifReader(),
        proxy_cache=CacheService.create(
            MemoryCacheRepository.create("proxy"),
            policy=CachePolicy.STALE_WHILE_REVALIDATE,
            ttl=settings.proxy_cache_ttl,
        ),
        metadata_cache=CacheService.create(
            MemoryCacheRepository.create("metadata"),
            policy=CachePolicy.STRICT,
            ttl=settings.metadata_cache_ttl,
        ),
    )

    try:
        for round_number in (1, 2):
            print_section(f"Round {round_number}")
            start = time.perf_counter()

            profile = await service.fetch_profile()
            print(f"\n👤 {profile.name} (@{profile.handle}): "
                  f"{profile.public_repo_count} repos, {profile.follower_count} followers")

            if identifiers:
                try:
                    repos = await service.fetch_repositories(identifiers)
                except UpstreamError as e:
                    print(f"\n✗ Repositories unavailable: {e}")
                else:
                    print("\n📦 Repositories:")
                    for repo in repos:
                        commits = "?" if repo.recent_commit_count is None else repo.recent_commit_count
                        print(f"  {repo.full_name:<40} ★ {repo.star_count:<6} commits (30d): {commits}")

            stats = await service.fetch_coding_stats()
            print(f"\n⌨️  {stats.total_time_text} ({stats.range})")
            for language in stats.languages:
                print(f"  {language.name:<20} {language.percent:5.1f}%  {language.total_time_text}")

            print(f"\n⏱  {(time.perf_counter() - start) * 1000:.1f} ms")

        print_section("Cache")
        print(service.get_stats())
    finally:
        await github.close()
        await coding_stats.close()


if __name__ == "__main__":
    asyncio.run(run(sys.argv[1:]))
