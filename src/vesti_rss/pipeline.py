"""Feed pipeline: page reader, record transformer and RSS writer.

A producer task walks the API pages and hands batches to the consumer through
a bounded queue; the consumer transforms each batch and writes its items in
order. Every blocking step (HTTP request, queue put and get) also wakes up on
the run-wide shutdown event.
"""

from __future__ import annotations

import asyncio
import enum
from typing import Any, Awaitable, BinaryIO, Optional, Tuple

import httpx

from .config import FeedConfig
from .decoder import decode_batch
from .exceptions import FeedError, ShutdownError
from .http_client import PageFetcher
from .logging_config import get_logger
from .models import (
    STATUS_FAILED,
    STATUS_INTERRUPTED,
    STATUS_SUCCESS,
    Batch,
    RunSummary,
)
from .parser_utils import load_timezone
from .transformer import RecordTransformer
from .writer import ChannelInfo, RSSWriter

logger = get_logger("pipeline")


class State(enum.Enum):
    START = "start"
    FETCHING = "fetching"
    DECODING = "decoding"
    YIELDING = "yielding"
    DONE = "done"
    FAILED = "failed"


async def _race(aw: Awaitable[Any], *events: asyncio.Event) -> Tuple[bool, Any]:
    """Await ``aw`` unless one of ``events`` is set first.

    Returns ``(True, result)`` when ``aw`` completed, or ``(False, None)`` when
    an event won and ``aw`` was cancelled. Exceptions from ``aw`` propagate.
    """
    task = asyncio.ensure_future(aw)
    waiters = [asyncio.ensure_future(event.wait()) for event in events]
    try:
        await asyncio.wait([task, *waiters], return_when=asyncio.FIRST_COMPLETED)
    finally:
        for waiter in waiters:
            waiter.cancel()
        if not task.done():
            task.cancel()

    if not task.done():
        await asyncio.gather(task, return_exceptions=True)
    if task.cancelled():
        return False, None
    return True, task.result()


class Pipeline:
    """Runs one page reader and one transformer/writer over a bounded queue."""

    def __init__(
        self,
        config: FeedConfig,
        fetcher: PageFetcher,
        transformer: RecordTransformer,
        writer: RSSWriter,
        shutdown: Optional[asyncio.Event] = None,
    ) -> None:
        self.config = config
        self.fetcher = fetcher
        self.transformer = transformer
        self.writer = writer
        self.shutdown = shutdown or asyncio.Event()
        self.queue: "asyncio.Queue[Batch]" = asyncio.Queue(maxsize=config.queue_size)
        self.state = State.START
        self.pages_fetched = 0
        self.records_read = 0
        # set by the consumer once no more batches are wanted
        self._done = asyncio.Event()
        # set by the producer when it exits, for whatever reason
        self._finished = asyncio.Event()

    async def run(self) -> None:
        """Write the whole document.

        Raises:
            ShutdownError: if the shutdown event was set
            FeedError: on any fatal fetch, decode or output error; the footer
                is not written in that case
        """
        self.writer.write_header()

        producer = asyncio.ensure_future(self._produce())
        logger.info("news reader started")
        try:
            await self._consume()
        except BaseException:
            self._done.set()
            producer.cancel()
            await asyncio.gather(producer, return_exceptions=True)
            raise

        self._done.set()
        if self.transformer.target_reached:
            # pages fetched after the target was met are not needed
            (result,) = await asyncio.gather(producer, return_exceptions=True)
            if isinstance(result, ShutdownError):
                raise result
            if isinstance(result, FeedError):
                logger.warning("news reader failed after the target was reached: %s", result)
            elif isinstance(result, BaseException):
                raise result
        else:
            await producer

        self.writer.write_footer()

    async def _produce(self) -> None:
        url = self.config.start_url
        try:
            while True:
                if self.shutdown.is_set():
                    raise ShutdownError("news reader stopped due to application shutdown")
                if self._done.is_set():
                    break

                self.state = State.FETCHING
                ok, body = await _race(self.fetcher.fetch(url), self.shutdown, self._done)
                if not ok:
                    continue
                self.pages_fetched += 1

                self.state = State.DECODING
                batch = decode_batch(body, url, self.config.base_url)

                self.state = State.YIELDING
                ok, _ = await _race(self.queue.put(batch), self.shutdown, self._done)
                if not ok:
                    continue
                self.records_read += len(batch)

                if batch.next_url is None:
                    logger.info("no more pages after %s", url)
                    break
                url = batch.next_url
        except BaseException:
            self.state = State.FAILED
            raise
        finally:
            self._finished.set()

        self.state = State.DONE
        logger.info("news reader has completed; received %d news items", self.records_read)

    async def _consume(self) -> None:
        while not self.transformer.target_reached:
            batch = await self._next_batch()
            if batch is None:
                break
            records = self.transformer.transform(batch)
            self.writer.write_items(records)

    async def _next_batch(self) -> Optional[Batch]:
        while True:
            if self.shutdown.is_set():
                raise ShutdownError("news writer stopped due to application shutdown")
            # batches queued before the producer exited are still delivered
            if not self.queue.empty():
                return self.queue.get_nowait()
            if self._finished.is_set():
                return None
            ok, batch = await _race(self.queue.get(), self.shutdown, self._finished)
            if ok:
                return batch


async def run_feed(
    config: FeedConfig,
    sink: BinaryIO,
    *,
    shutdown: Optional[asyncio.Event] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> RunSummary:
    """Run the pipeline once and summarize the outcome.

    Fatal errors are logged and reported in the summary rather than raised.
    """
    summary = RunSummary()
    try:
        tz = load_timezone(config.timezone)
    except FeedError as exc:
        logger.error("%s", exc)
        summary.status = STATUS_FAILED
        summary.error = str(exc)
        return summary

    transformer = RecordTransformer(config.base_url, tz, config.max_items)
    writer = RSSWriter(sink, ChannelInfo.from_config(config))
    summary.stats = transformer.stats

    async with PageFetcher(config, transport=transport) as fetcher:
        pipeline = Pipeline(config, fetcher, transformer, writer, shutdown)
        try:
            await pipeline.run()
        except ShutdownError as exc:
            logger.error("%s", exc)
            summary.status = STATUS_INTERRUPTED
            summary.error = str(exc)
        except FeedError as exc:
            logger.error("%s", exc)
            summary.status = STATUS_FAILED
            summary.error = str(exc)
        else:
            summary.status = STATUS_SUCCESS
            logger.info("wrote %d news items", writer.items_written)
        finally:
            summary.pages_fetched = pipeline.pages_fetched

    return summary
