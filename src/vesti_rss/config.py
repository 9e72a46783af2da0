"""Configuration for a feed run."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from . import USER_AGENT
from .exceptions import ConfigError
from .logging_config import LOG_LEVELS
from .parser_utils import DEFAULT_TIMEZONE

MIN_ITEMS = 1
MAX_ITEMS = 500


@dataclass(frozen=True)
class FeedConfig:
    """Settings for one run; every field has a working default."""

    base_url: str = "https://www.vesti.ru"
    api_path: str = "/api/news"
    max_items: int = 100
    user_agent: str = USER_AGENT
    request_timeout: float = 5.0
    idle_timeout: float = 20.0
    queue_size: int = 10
    timezone: str = DEFAULT_TIMEZONE
    channel_title: str = "vesti.ru Новости"
    channel_link: str = "https://www.vesti.ru"
    channel_description: str = "Лента новостей"
    log_level: str = "info"

    @property
    def start_url(self) -> str:
        return self.base_url.rstrip("/") + self.api_path

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FeedConfig":
        """Build a config from a mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"unknown configuration keys: {', '.join(unknown)}")
        return cls(**data).validate()

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "FeedConfig":
        """Load configuration from a YAML file."""
        config_path = Path(path)
        if not config_path.exists():
            raise ConfigError(f"config file not found: {config_path}")

        try:
            with open(config_path, "r", encoding="utf-8") as handle:
                data = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ConfigError(f"{config_path} must contain a mapping")
        return cls.from_dict(data)

    def with_overrides(self, **overrides: Optional[Any]) -> "FeedConfig":
        """Return a copy with the non-None overrides applied."""
        values = {key: value for key, value in overrides.items() if value is not None}
        if not values:
            return self
        return replace(self, **values).validate()

    def validate(self) -> "FeedConfig":
        if isinstance(self.max_items, bool) or not isinstance(self.max_items, int):
            raise ConfigError(f"invalid number of items: {self.max_items!r}")
        if not MIN_ITEMS <= self.max_items <= MAX_ITEMS:
            raise ConfigError(
                f"invalid number of items: {self.max_items} (expected {MIN_ITEMS} to {MAX_ITEMS})"
            )
        if not self.base_url.startswith(("http://", "https://")):
            raise ConfigError(f"base_url must be an http(s) URL: {self.base_url!r}")
        if not self.api_path.startswith("/"):
            raise ConfigError(f"api_path must start with '/': {self.api_path!r}")
        for name in ("request_timeout", "idle_timeout"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                raise ConfigError(f"{name} must be a positive number: {value!r}")
        if isinstance(self.queue_size, bool) or not isinstance(self.queue_size, int) or self.queue_size < 1:
            raise ConfigError(f"queue_size must be at least 1: {self.queue_size}")
        if str(self.log_level).lower() not in LOG_LEVELS:
            raise ConfigError(f"invalid logging level: {self.log_level!r}")
        return self

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
