"""Record transformation and duplicate suppression."""

from __future__ import annotations

from datetime import tzinfo
from typing import List, Optional, Set

from .exceptions import RecordError
from .logging_config import get_logger
from .models import Batch, NormalizedRecord, RawRecord, TransformStats
from .parser_utils import make_link, parse_timestamp

logger = get_logger("transformer")


class RecordTransformer:
    """Turns raw records into normalized ones, dropping duplicates and bad records.

    The seen-set only holds ids of records that were accepted, so a record
    dropped for a bad link or timestamp is evaluated again if the same id shows
    up on a later page. Records are processed strictly in arrival order and
    nothing is accepted once ``target`` records have been.
    """

    def __init__(self, base_url: str, tz: tzinfo, target: int) -> None:
        self.base_url = base_url
        self.tz = tz
        self.target = target
        self.stats = TransformStats()
        self._seen: Set[int] = set()

    @property
    def accepted(self) -> int:
        return len(self._seen)

    @property
    def target_reached(self) -> bool:
        return len(self._seen) >= self.target

    def transform(self, batch: Batch) -> List[NormalizedRecord]:
        """Transform one batch, returning the records to emit in order."""
        out: List[NormalizedRecord] = []
        for raw in batch.records:
            if self.target_reached:
                break
            self.stats.received += 1
            record = self._transform_record(raw)
            if record is not None:
                out.append(record)

        logger.debug(
            "batch from %s: %d of %d records accepted, %d in total",
            batch.page_url,
            len(out),
            len(batch),
            self.accepted,
        )
        return out

    def _transform_record(self, raw: RawRecord) -> Optional[NormalizedRecord]:
        if raw.id in self._seen:
            self.stats.duplicates += 1
            logger.warning("skipped duplicate news item %d", raw.id)
            return None

        try:
            link = make_link(self.base_url, raw.url)
            published_at = parse_timestamp(raw.day, raw.time, self.tz)
        except RecordError as exc:
            self.stats.dropped += 1
            logger.warning("skipped news item %d: %s", raw.id, exc)
            return None

        self._seen.add(raw.id)
        self.stats.accepted += 1
        return NormalizedRecord(
            id=raw.id,
            title=raw.title,
            summary=raw.summary,
            link=link,
            published_at=published_at,
        )
