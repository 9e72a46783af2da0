"""Tests for the page fetcher."""

import asyncio
import time
from dataclasses import replace

import httpx
import pytest

from vesti_rss import USER_AGENT
from vesti_rss.exceptions import TransportError
from vesti_rss.http_client import PageFetcher

URL = "https://news.example.com/api/news"


@pytest.mark.asyncio
async def test_fetch_sends_headers_and_trims_body(config, page_transport, requests_seen):
    transport = page_transport({"/api/news": '  \n{"success": true}\n  '})

    async with PageFetcher(config, transport=transport) as fetcher:
        body = await fetcher.fetch(URL)

    assert body == '{"success": true}'
    assert len(requests_seen) == 1
    request = requests_seen[0]
    assert request.method == "GET"
    assert request.headers["Accept"] == "application/json"
    assert request.headers["User-Agent"] == USER_AGENT


def test_client_is_limited_to_one_connection(config):
    fetcher = PageFetcher(config)
    assert fetcher.limits.max_connections == 1
    assert fetcher.limits.max_keepalive_connections == 1
    assert fetcher.limits.keepalive_expiry == 20.0
    assert fetcher.timeout.read == 5.0
    assert fetcher.timeout.connect == 5.0


@pytest.mark.asyncio
async def test_non_200_status_reports_code_and_reason(config, page_transport):
    transport = page_transport({"/api/news": httpx.Response(503)})

    async with PageFetcher(config, transport=transport) as fetcher:
        with pytest.raises(TransportError) as excinfo:
            await fetcher.fetch(URL)

    message = str(excinfo.value)
    assert "503" in message
    assert "Service Unavailable" in message
    assert URL in message


@pytest.mark.asyncio
async def test_redirect_is_not_followed(config, page_transport, requests_seen):
    transport = page_transport(
        {
            "/api/news": httpx.Response(302, headers={"Location": "/elsewhere"}),
            "/elsewhere": {"success": True},
        }
    )

    async with PageFetcher(config, transport=transport) as fetcher:
        with pytest.raises(TransportError, match="302"):
            await fetcher.fetch(URL)

    assert [r.url.path for r in requests_seen] == ["/api/news"]


@pytest.mark.asyncio
@pytest.mark.parametrize("body", ["", "   \n ", "<html><body>Error</body></html>", "[1, 2]"])
async def test_html_or_empty_body_is_rejected(config, page_transport, body):
    transport = page_transport({"/api/news": httpx.Response(200, text=body)})

    async with PageFetcher(config, transport=transport) as fetcher:
        with pytest.raises(TransportError, match="empty, or in a wrong format"):
            await fetcher.fetch(URL)


@pytest.mark.asyncio
async def test_connection_error_becomes_transport_error(config, page_transport):
    transport = page_transport({"/api/news": httpx.ConnectError("connection refused")})

    async with PageFetcher(config, transport=transport) as fetcher:
        with pytest.raises(TransportError, match="connection refused"):
            await fetcher.fetch(URL)


@pytest.mark.asyncio
async def test_timeout_becomes_transport_error(config, page_transport):
    transport = page_transport({"/api/news": httpx.ReadTimeout("too slow")})

    async with PageFetcher(config, transport=transport) as fetcher:
        with pytest.raises(TransportError, match="timed out"):
            await fetcher.fetch(URL)


class _TrickleStream(httpx.AsyncByteStream):
    """Body sent a few bytes at a time, each chunk well within the read timeout."""

    def __init__(self, body, chunk_size=3, delay=0.2):
        self.body = body
        self.chunk_size = chunk_size
        self.delay = delay

    async def __aiter__(self):
        for start in range(0, len(self.body), self.chunk_size):
            await asyncio.sleep(self.delay)
            yield self.body[start : start + self.chunk_size]


@pytest.mark.asyncio
async def test_slow_body_is_bounded_by_request_timeout(config):
    config = replace(config, request_timeout=0.5)
    transport = httpx.MockTransport(
        lambda request: httpx.Response(200, stream=_TrickleStream(b'{"success": true, "data": []}'))
    )

    started = time.monotonic()
    async with PageFetcher(config, transport=transport) as fetcher:
        with pytest.raises(TransportError, match="timed out"):
            await fetcher.fetch(URL)

    assert time.monotonic() - started < 1.5
