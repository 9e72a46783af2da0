"""Decoding of API pages into batches of raw records."""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

from .exceptions import EnvelopeError, LinkError
from .models import Batch, RawRecord
from .parser_utils import make_link

# news item ids are unsigned 64-bit integers upstream
MAX_RECORD_ID = 2**64 - 1


def decode_batch(body: str, page_url: str, base_url: str) -> Batch:
    """Parse one page payload.

    The payload looks like::

        {"success": true,
         "data": [{"ID": 1, "Title": "...", "Anons": "...", "URL": "/article/1",
                   "DatePub": {"Day": "5 января 2024", "Time": "09:30"}}],
         "pagination": {"next": "/api/news?page=2"}}

    Raises:
        EnvelopeError: if the payload is not valid JSON, reports failure,
            carries no records, or has an invalid continuation path
    """
    try:
        envelope = json.loads(body)
    except ValueError as exc:
        raise EnvelopeError(f"invalid response from {page_url}: {exc}") from exc

    if not isinstance(envelope, dict):
        raise EnvelopeError(f"invalid response from {page_url}: not a JSON object")

    if envelope.get("success") is not True:
        raise EnvelopeError(f"response from {page_url} indicates an error")

    data = envelope.get("data")
    if data is None:
        data = []
    if not isinstance(data, list):
        raise EnvelopeError(f"invalid response from {page_url}: 'data' is not a list")
    if not data:
        raise EnvelopeError(f"response from {page_url} contains no news items")

    records = tuple(_decode_record(item, index, page_url) for index, item in enumerate(data))

    return Batch(
        records=records,
        page_url=page_url,
        next_url=_next_url(envelope.get("pagination"), page_url, base_url),
    )


def _next_url(pagination: Any, page_url: str, base_url: str) -> Optional[str]:
    if pagination is None:
        return None
    if not isinstance(pagination, dict):
        raise EnvelopeError(f"invalid response from {page_url}: 'pagination' is not an object")

    next_path = pagination.get("next")
    if next_path is None:
        return None
    if not isinstance(next_path, str):
        raise EnvelopeError(f"invalid next page path in response from {page_url}: {next_path!r}")

    try:
        return make_link(base_url, next_path)
    except LinkError as exc:
        raise EnvelopeError(f"invalid next page path in response from {page_url}: {exc}") from exc


def _decode_record(item: Any, index: int, page_url: str) -> RawRecord:
    if not isinstance(item, dict):
        raise EnvelopeError(f"invalid news item #{index} in response from {page_url}")

    record_id = item.get("ID")
    if isinstance(record_id, bool) or not isinstance(record_id, int) or not 0 <= record_id <= MAX_RECORD_ID:
        raise EnvelopeError(f"invalid ID {record_id!r} of news item #{index} in response from {page_url}")

    date_pub = item.get("DatePub") or {}
    if not isinstance(date_pub, dict):
        raise EnvelopeError(f"invalid DatePub of news item {record_id} in response from {page_url}")

    return RawRecord(
        id=record_id,
        title=_text(item, "Title", record_id, page_url),
        summary=_text(item, "Anons", record_id, page_url),
        url=_text(item, "URL", record_id, page_url),
        day=_text(date_pub, "Day", record_id, page_url),
        time=_text(date_pub, "Time", record_id, page_url),
    )


def _text(source: Dict[str, Any], key: str, record_id: int, page_url: str) -> str:
    value = source.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise EnvelopeError(f"invalid {key} of news item {record_id} in response from {page_url}")
    return value
