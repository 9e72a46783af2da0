"""Data models for the feed pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

STATUS_SUCCESS = "success"
STATUS_FAILED = "failed"
STATUS_INTERRUPTED = "interrupted"


@dataclass(frozen=True)
class RawRecord:
    """One upstream news entry exactly as the API returned it."""

    id: int
    title: str
    summary: str
    url: str
    day: str
    time: str


@dataclass(frozen=True)
class Batch:
    """One page of raw records plus the URL of the following page.

    ``next_url`` is ``None`` when the provider reports no further page.
    """

    records: Tuple[RawRecord, ...]
    page_url: str
    next_url: Optional[str] = None

    def __len__(self) -> int:
        return len(self.records)


@dataclass(frozen=True)
class NormalizedRecord:
    """A validated record ready for serialization.

    Text fields are kept unescaped; escaping happens in the writer.
    """

    id: int
    title: str
    summary: str
    link: str
    published_at: datetime


@dataclass
class TransformStats:
    """Counters maintained by the record transformer."""

    received: int = 0
    accepted: int = 0
    duplicates: int = 0
    dropped: int = 0


@dataclass
class RunSummary:
    """Summary of a pipeline run."""

    status: str = STATUS_SUCCESS
    pages_fetched: int = 0
    stats: TransformStats = field(default_factory=TransformStats)
    error: Optional[str] = None

    def exit_code(self) -> int:
        """Return appropriate exit code based on run status."""
        if self.status == STATUS_INTERRUPTED:
            return 2
        if self.status == STATUS_FAILED:
            return 1
        return 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert summary to dictionary for logging."""
        return {
            "status": self.status,
            "pages_fetched": self.pages_fetched,
            "records_received": self.stats.received,
            "records_accepted": self.stats.accepted,
            "records_duplicate": self.stats.duplicates,
            "records_dropped": self.stats.dropped,
            "error": self.error,
            "exit_code": self.exit_code(),
        }
