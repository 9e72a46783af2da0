"""Shared fixtures for vesti_rss tests."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from vesti_rss.config import FeedConfig

BASE_URL = "https://news.example.com"


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Undo setup_logging() so caplog sees records from every test."""
    logger = logging.getLogger("vesti_rss")
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def base_url() -> str:
    return BASE_URL


@pytest.fixture
def config() -> FeedConfig:
    return FeedConfig(base_url=BASE_URL, api_path="/api/news", max_items=100, queue_size=2)


@pytest.fixture
def make_item() -> Callable[..., Dict[str, Any]]:
    def _make_item(
        item_id: int,
        *,
        url: Optional[str] = None,
        day: str = "5 января 2024",
        time: str = "09:30",
        title: Optional[str] = None,
        anons: str = "",
    ) -> Dict[str, Any]:
        return {
            "ID": item_id,
            "Title": title if title is not None else f"News {item_id}",
            "Anons": anons,
            "URL": url if url is not None else f"/article/{item_id}",
            "DatePub": {"Day": day, "Time": time},
        }

    return _make_item


@pytest.fixture
def make_page() -> Callable[..., Dict[str, Any]]:
    def _make_page(items: List[Dict[str, Any]], next_path: Optional[str] = None, success: bool = True) -> Dict[str, Any]:
        return {"success": success, "data": items, "pagination": {"next": next_path}}

    return _make_page


@pytest.fixture
def requests_seen() -> List[httpx.Request]:
    return []


@pytest.fixture
def page_transport(requests_seen) -> Callable[[Dict[str, Any]], httpx.MockTransport]:
    """Build a mock transport serving pages keyed by path and query."""

    def _build(pages: Dict[str, Any]) -> httpx.MockTransport:
        def handler(request: httpx.Request) -> httpx.Response:
            requests_seen.append(request)
            key = request.url.raw_path.decode("ascii")
            if key not in pages:
                return httpx.Response(404)
            page = pages[key]
            if isinstance(page, httpx.Response):
                return page
            if isinstance(page, Exception):
                raise page
            if isinstance(page, (dict, list)):
                return httpx.Response(200, json=page)
            return httpx.Response(200, text=page)

        return httpx.MockTransport(handler)

    return _build
