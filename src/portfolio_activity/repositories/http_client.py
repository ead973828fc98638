"""Shared async HTTP plumbing for upstream JSON APIs."""

import logging
from typing import Any

import httpx

from portfolio_activity.errors import UpstreamError

logger = logging.getLogger(__name__)


class JsonApiClient:
    """Base class for httpx-backed JSON API clients.

    Subclasses provide the base URL and default headers. Every request is
    bounded by ``timeout``; transport errors, timeouts, non-success statuses
    and undecodable bodies all surface as ``UpstreamError``.
    """

    service_name = "upstream"

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: API root, without trailing slash.
            timeout: Request timeout in seconds.
            headers: Headers sent with every request.
            transport: Optional httpx transport (tests use ``httpx.MockTransport``).
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._headers = headers or {}
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client.

        Returns:
            The httpx.AsyncClient instance
        """
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers=self._headers,
                timeout=self._timeout,
                transport=self._transport,
                limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
            )
        return self._client

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """GET a path and decode its JSON body.

        Raises:
            UpstreamError: On any transport, status or decoding failure
        """
        try:
            response = await self.client.get(path, params=params)
        except httpx.TimeoutException as e:
            raise UpstreamError(f"{self.service_name} request timed out: GET {path}") from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"{self.service_name} request failed: GET {path}: {e}") from e

        if not response.is_success:
            raise UpstreamError(
                f"{self.service_name} API error: GET {path} returned {response.status_code}"
            )

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(f"{self.service_name} returned a non-JSON body for GET {path}") from e

    async def close(self) -> None:
        """Close the async HTTP client.

        Should be called when shutting down the application.
        """
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.debug("Closed %s HTTP client", self.service_name)
