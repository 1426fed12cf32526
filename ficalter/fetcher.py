"""HTTP client for downloading the upstream ICS calendar."""

import logging
from typing import Any, Optional
from urllib.parse import urlparse

import httpx

from .core.http_client import get_shared_client

logger = logging.getLogger(__name__)

DEFAULT_REQUEST_TIMEOUT = 30
EXPECTED_CONTENT_TYPES = ("text/calendar", "text/plain")


class UpstreamFetchError(Exception):
    """Base exception for upstream fetch errors."""


class UpstreamStatusError(UpstreamFetchError):
    """Upstream answered with a status other than 200."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class UpstreamFetcher:
    """Downloads the upstream calendar body as raw bytes.

    A failed fetch is never retried; the error propagates to the request that
    triggered it.
    """

    def __init__(self, settings: Any = None, client: Optional[httpx.AsyncClient] = None) -> None:
        """Initialize the fetcher.

        Args:
            settings: Object or dict providing ``request_timeout``
            client: Optional HTTP client; the shared client is used when omitted
        """
        self.settings = settings
        self.client = client
        self._client_id = "upstream"

    def _request_timeout(self) -> float:
        if isinstance(self.settings, dict):
            return float(self.settings.get("request_timeout", DEFAULT_REQUEST_TIMEOUT))
        return float(getattr(self.settings, "request_timeout", DEFAULT_REQUEST_TIMEOUT))

    @staticmethod
    def validate_url(url: str) -> bool:
        """Return True for http(s) URLs that name a host."""
        try:
            parsed = urlparse(url)
        except ValueError as e:
            logger.debug("URL validation error for %s: %s", url, e)
            return False

        if parsed.scheme not in ("http", "https"):
            logger.debug("Blocked non-HTTP(S) URL: %s", url)
            return False
        if not parsed.hostname:
            logger.debug("Blocked URL with missing hostname: %s", url)
            return False
        return True

    async def _get_client(self) -> httpx.AsyncClient:
        if self.client is None:
            self.client = await get_shared_client(self._client_id)
        return self.client

    async def fetch(self, url: str) -> bytes:
        """Download the calendar at ``url``.

        Args:
            url: HTTP(S) URL of the upstream calendar

        Returns:
            The response body, undecoded

        Raises:
            UpstreamStatusError: The upstream status was not 200
            UpstreamFetchError: Invalid URL, timeout or transport failure
        """
        if not self.validate_url(url):
            raise UpstreamFetchError(f"Refusing to fetch invalid upstream URL: {url!r}")

        client = await self._get_client()
        timeout = self._request_timeout()
        logger.debug("Fetching upstream calendar from %s", url)

        try:
            response = await client.get(url, timeout=timeout, follow_redirects=True)
        except httpx.TimeoutException as e:
            logger.warning("Timeout fetching upstream calendar from %s", url)
            raise UpstreamFetchError(f"Request timeout after {timeout:g}s") from e
        except httpx.HTTPError as e:
            logger.warning("Network error fetching upstream calendar from %s: %s", url, e)
            raise UpstreamFetchError(f"Network error: {e}") from e

        if response.status_code != 200:
            logger.error("Upstream %s answered HTTP %d", url, response.status_code)
            raise UpstreamStatusError(
                f"Status {response.status_code}: {response.reason_phrase}",
                response.status_code,
            )

        content_type = response.headers.get("content-type", "").lower()
        if content_type and not any(ct in content_type for ct in EXPECTED_CONTENT_TYPES):
            logger.warning("Unexpected upstream content type: %s", content_type)

        content = response.content
        logger.debug("Fetched %d bytes from %s", len(content), url)
        return content
