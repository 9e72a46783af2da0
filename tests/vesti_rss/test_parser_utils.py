"""Tests for timestamp and link parsing."""

from datetime import datetime, timedelta, timezone

import pytest

from vesti_rss.exceptions import ConfigError, LinkError, TimestampError
from vesti_rss.parser_utils import (
    format_pub_date,
    load_timezone,
    make_link,
    parse_timestamp,
)


@pytest.fixture(scope="module")
def moscow():
    return load_timezone("Europe/Moscow")


def test_parse_timestamp_converts_moscow_time_to_utc(moscow):
    result = parse_timestamp("5 января 2024", "09:30", moscow)
    assert result == datetime(2024, 1, 5, 6, 30, tzinfo=timezone.utc)
    assert result.utcoffset() == timedelta(0)


def test_parse_timestamp_accepts_single_digit_hour_and_case(moscow):
    result = parse_timestamp("31 Декабря 2023", "9:05", moscow)
    assert result == datetime(2023, 12, 31, 6, 5, tzinfo=timezone.utc)


def test_parse_timestamp_accepts_nominative_month(moscow):
    result = parse_timestamp("1 май 2024", "00:00", moscow)
    assert result == datetime(2024, 4, 30, 21, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "day, time",
    [
        ("32 января 2024", "10:00"),
        ("5 января 2024", "25:00"),
        ("5 января 2024", "10:60"),
        ("30 февраля 2024", "10:00"),
        ("5 jan 2024", "10:00"),
        ("5 января", "10:00"),
        ("5 января 24", "10:00"),
        ("", "10:00"),
        ("5 января 2024", ""),
        ("5 января 2024", "10.00"),
        ("5 января 2024", "10:00:00"),
    ],
)
def test_parse_timestamp_rejects_malformed_input(moscow, day, time):
    with pytest.raises(TimestampError):
        parse_timestamp(day, time, moscow)


def test_load_timezone_rejects_unknown_zone():
    with pytest.raises(ConfigError):
        load_timezone("Mars/Olympus_Mons")


def test_format_pub_date_is_rfc2822():
    value = datetime(2024, 1, 5, 6, 30, tzinfo=timezone.utc)
    assert format_pub_date(value) == "Fri, 05 Jan 2024 06:30:00 +0000"


def test_format_pub_date_converts_to_utc(moscow):
    value = datetime(2024, 1, 5, 9, 30, tzinfo=moscow)
    assert format_pub_date(value) == "Fri, 05 Jan 2024 06:30:00 +0000"


def test_make_link_resolves_relative_path():
    assert make_link("https://www.vesti.ru", "/article/123") == "https://www.vesti.ru/article/123"
    assert make_link("https://www.vesti.ru/", "/api/news?page=2") == "https://www.vesti.ru/api/news?page=2"


@pytest.mark.parametrize(
    "path",
    [
        "",
        "article/1",
        "https://evil.example.com/x",
        "//evil.example.com/x",
        "/with space",
        "/with\nnewline",
    ],
)
def test_make_link_rejects_invalid_paths(path):
    with pytest.raises(LinkError):
        make_link("https://www.vesti.ru", path)


def test_make_link_rejects_non_http_base():
    with pytest.raises(LinkError):
        make_link("ftp://www.vesti.ru", "/article/1")
