"""GitHub REST API client.

Satisfies the GitHubSource protocol. Returns raw decoded JSON; validation
and normalization happen in the service layer.
"""

from urllib.parse import quote

import httpx

from portfolio_activity.config import Settings
from portfolio_activity.repositories.http_client import JsonApiClient
from portfolio_activity.utils import WindowQuery


def _repo_path(full_name: str) -> str:
    owner, _, name = full_name.partition("/")
    return f"/repos/{quote(owner, safe='')}/{quote(name, safe='')}"


class GitHubClient(JsonApiClient):
    """Async GitHub API client.

    Example:
        ```python
        client = GitHubClient.create(settings)
        user = await client.get_user("octocat")
        ```
    """

    service_name = "GitHub"

    def __init__(
        self,
        base_url: str = "https://api.github.com",
        token: str | None = None,
        timeout: float = 10.0,
        user_agent: str = "portfolio-activity/0.1",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the GitHub client.

        Args:
            base_url: API root.
            token: Optional token; raises the anonymous rate limit when set.
            timeout: Request timeout in seconds.
            user_agent: Value of the User-Agent header (required by GitHub).
            transport: Optional httpx transport.
        """
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": user_agent,
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        super().__init__(base_url, timeout=timeout, headers=headers, transport=transport)

    @classmethod
    def create(
        cls,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "GitHubClient":
        """Factory method to create a GitHubClient from settings."""
        return cls(
            base_url=settings.github_api_url,
            token=settings.github_token,
            timeout=settings.upstream_timeout,
            user_agent=settings.user_agent,
            transport=transport,
        )

    async def get_user(self, username: str):
        """Fetch ``/users/{username}``."""
        return await self._get_json(f"/users/{quote(username, safe='')}")

    async def get_repository(self, full_name: str):
        """Fetch ``/repos/{owner}/{repo}``."""
        return await self._get_json(_repo_path(full_name))

    async def list_commits(self, full_name: str, window: WindowQuery):
        """Fetch ``/repos/{owner}/{repo}/commits`` scoped to a trailing window."""
        return await self._get_json(f"{_repo_path(full_name)}/commits", params=window.to_params())
