"""HTTP page fetcher for the news API."""

from __future__ import annotations

import asyncio
from typing import Dict, Optional

import httpx

from .config import FeedConfig
from .exceptions import TransportError
from .logging_config import get_logger

logger = get_logger("http_client")

# how much of an unexpected body to show in the log
BODY_SNIPPET_LENGTH = 500


class PageFetcher:
    """Fetches API pages over a single shared connection.

    The provider is sensitive to request bursts and pagination is strictly
    sequential, so the underlying client holds at most one connection.
    Redirects are not followed: a redirect fails the status check like any
    other non-200 response.
    """

    def __init__(
        self,
        config: Optional[FeedConfig] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config or FeedConfig()
        self.timeout = httpx.Timeout(self.config.request_timeout)
        self.limits = httpx.Limits(
            max_connections=1,
            max_keepalive_connections=1,
            keepalive_expiry=self.config.idle_timeout,
        )
        self.headers: Dict[str, str] = {
            "Accept": "application/json",
            "User-Agent": self.config.user_agent,
        }
        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            limits=self.limits,
            headers=self.headers,
            follow_redirects=False,
            transport=transport,
        )

    async def __aenter__(self) -> "PageFetcher":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch(self, url: str) -> str:
        """Fetch one page and return its whitespace-trimmed body.

        The whole round trip, body included, is bounded by
        ``config.request_timeout``.

        Raises:
            TransportError: on network failure, timeout, a non-200 status, or
                a body that is empty or does not look like a JSON object
        """
        logger.info("reading page from %s", url)

        try:
            body = await asyncio.wait_for(self._read_page(url), self.config.request_timeout)
        except asyncio.TimeoutError as exc:
            raise TransportError(
                f"HTTP request to {url} timed out after {self.config.request_timeout:g}s"
            ) from exc

        body = body.strip()
        if not body.startswith("{"):
            if body:
                logger.debug("unexpected response body from %s: %s", url, body[:BODY_SNIPPET_LENGTH])
            raise TransportError(f"response from {url} is either empty, or in a wrong format")

        return body

    async def _read_page(self, url: str) -> str:
        try:
            async with self._client.stream("GET", url) as response:
                if response.status_code != httpx.codes.OK:
                    msg = f"HTTP request to {url} returned status code {response.status_code}"
                    if response.reason_phrase:
                        msg += f" ({response.reason_phrase})"
                    raise TransportError(msg)

                # the server reports some errors as HTML pages with status 200,
                # so the body has to be checked before decoding
                await response.aread()
                return response.text
        except httpx.TimeoutException as exc:
            raise TransportError(f"HTTP request to {url} timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"making HTTP request to {url}: {exc}") from exc
