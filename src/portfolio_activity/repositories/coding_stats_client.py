"""Wakapi / WakaTime stats client.

Wakapi exposes public stats at ``/api/v1/users/{user}/stats/{range}``.
WakaTime serves the same shape from its official API, authenticated with the
account's API key.
"""

import base64
from urllib.parse import quote

import httpx

from portfolio_activity.config import Settings
from portfolio_activity.repositories.http_client import JsonApiClient


class CodingStatsClient(JsonApiClient):
    """Async client satisfying the CodingStatsSource protocol."""

    def __init__(
        self,
        provider: str,
        base_url: str,
        api_key: str | None = None,
        timeout: float = 10.0,
        user_agent: str = "portfolio-activity/0.1",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the stats client.

        Args:
            provider: "wakapi" or "wakatime".
            base_url: API root of the provider.
            api_key: WakaTime API key (sent as HTTP Basic credentials).
            timeout: Request timeout in seconds.
            user_agent: Value of the User-Agent header.
            transport: Optional httpx transport.
        """
        headers = {"Accept": "application/json", "User-Agent": user_agent}
        if api_key:
            token = base64.b64encode(api_key.encode()).decode()
            headers["Authorization"] = f"Basic {token}"
        super().__init__(base_url, timeout=timeout, headers=headers, transport=transport)
        self._provider = provider
        self.service_name = provider.capitalize()

    @classmethod
    def create(
        cls,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "CodingStatsClient":
        """Factory method for the provider selected in settings."""
        if settings.coding_stats_provider == "wakatime":
            return cls(
                provider="wakatime",
                base_url=settings.wakatime_base_url,
                api_key=settings.wakatime_api_key,
                timeout=settings.upstream_timeout,
                user_agent=settings.user_agent,
                transport=transport,
            )
        return cls(
            provider="wakapi",
            base_url=settings.wakapi_base_url,
            timeout=settings.upstream_timeout,
            user_agent=settings.user_agent,
            transport=transport,
        )

    @property
    def provider(self) -> str:
        """Short provider name."""
        return self._provider

    async def get_stats(self, username: str, range_name: str):
        """Fetch stats for ``username`` over a named range."""
        path = f"/api/v1/users/{quote(username, safe='')}/stats/{quote(range_name, safe='')}"
        return await self._get_json(path)
