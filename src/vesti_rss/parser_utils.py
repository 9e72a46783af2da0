"""Parsing utilities: publication timestamps and record links."""

from __future__ import annotations

import re
from datetime import datetime, timezone, tzinfo
from email.utils import format_datetime
from urllib.parse import urljoin, urlsplit
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .exceptions import ConfigError, LinkError, TimestampError

DEFAULT_TIMEZONE = "Europe/Moscow"

# genitive forms as used in dates ("5 января 2024"), plus nominative forms
MONTHS = {
    "января": 1,
    "февраля": 2,
    "марта": 3,
    "апреля": 4,
    "мая": 5,
    "июня": 6,
    "июля": 7,
    "августа": 8,
    "сентября": 9,
    "октября": 10,
    "ноября": 11,
    "декабря": 12,
    "январь": 1,
    "февраль": 2,
    "март": 3,
    "апрель": 4,
    "май": 5,
    "июнь": 6,
    "июль": 7,
    "август": 8,
    "сентябрь": 9,
    "октябрь": 10,
    "ноябрь": 11,
    "декабрь": 12,
}

_DAY_RE = re.compile(r"^\s*(\d{1,2})\s+(\w+)\s+(\d{4})\s*$")
_TIME_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")
_UNSAFE_PATH_RE = re.compile(r"[\s\x00-\x1f\x7f]")


def load_timezone(name: str = DEFAULT_TIMEZONE) -> tzinfo:
    """Load a named time zone; done once at startup."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigError(f"unknown time zone {name!r}: {exc}") from exc


def parse_timestamp(day: str, time: str, tz: tzinfo) -> datetime:
    """Convert a local date and time-of-day pair into a UTC datetime.

    ``day`` looks like ``"5 января 2024"`` and ``time`` like ``"09:30"``; the
    wall-clock time is interpreted in ``tz``.

    Raises:
        TimestampError: if either part is malformed or out of range
    """
    day_match = _DAY_RE.match(day or "")
    if day_match is None:
        raise TimestampError(f"invalid date {day!r}")

    time_match = _TIME_RE.match(time or "")
    if time_match is None:
        raise TimestampError(f"invalid time {time!r}")

    month = MONTHS.get(day_match.group(2).lower())
    if month is None:
        raise TimestampError(f"unknown month name in date {day!r}")

    try:
        local = datetime(
            int(day_match.group(3)),
            month,
            int(day_match.group(1)),
            int(time_match.group(1)),
            int(time_match.group(2)),
            tzinfo=tz,
        )
    except ValueError as exc:
        raise TimestampError(f"invalid date/time {day!r} {time!r}: {exc}") from exc

    return local.astimezone(timezone.utc)


def format_pub_date(value: datetime) -> str:
    """Render a datetime as an RFC 2822 timestamp for ``<pubDate>``."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return format_datetime(value.astimezone(timezone.utc))


def make_link(base_url: str, path: str) -> str:
    """Resolve a site-relative path against ``base_url``.

    The path must be non-empty and start with a single ``/``; the result must
    be an absolute http(s) URL on the same host as ``base_url``.

    Raises:
        LinkError: if the path or the resulting URL is invalid
    """
    if not path:
        raise LinkError("empty URL path")
    if not path.startswith("/") or path.startswith("//"):
        raise LinkError(f"URL path {path!r} does not start with '/'")
    if _UNSAFE_PATH_RE.search(path):
        raise LinkError(f"URL path {path!r} contains whitespace or control characters")

    try:
        link = urljoin(base_url, path)
        parts = urlsplit(link)
        base = urlsplit(base_url)
    except ValueError as exc:
        raise LinkError(f"invalid URL {base_url}{path}: {exc}") from exc

    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise LinkError(f"{link!r} is not an absolute http(s) URL")
    if parts.netloc != base.netloc:
        raise LinkError(f"{link!r} points outside {base_url}")
    return link
