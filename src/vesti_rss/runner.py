"""vesti-rss command line runner.

Reads the news API and writes the RSS document to standard output. Exit code
is 0 on success, 1 on failure and 2 when interrupted by a signal.
"""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys
from pathlib import Path
from typing import BinaryIO, List, NoReturn, Optional

from .config import MAX_ITEMS, MIN_ITEMS, FeedConfig
from .exceptions import ConfigError
from .logging_config import get_logger, parse_log_level, setup_logging
from .models import RunSummary
from .pipeline import run_feed

logger = get_logger("runner")

SHUTDOWN_SIGNALS = ("SIGINT", "SIGTERM", "SIGHUP", "SIGQUIT")


def install_signal_handlers(loop: asyncio.AbstractEventLoop, shutdown: asyncio.Event) -> List[int]:
    """Set ``shutdown`` on termination signals; returns the signals handled."""

    def _on_signal(signum: int) -> None:
        if not shutdown.is_set():
            logger.error("signal %d: %s", signum, signal.Signals(signum).name)
            shutdown.set()
        else:
            logger.warning("signal %d: %s", signum, signal.Signals(signum).name)

    installed: List[int] = []
    for name in SHUTDOWN_SIGNALS:
        signum = getattr(signal, name, None)
        if signum is None:
            continue
        try:
            loop.add_signal_handler(signum, _on_signal, int(signum))
        except (NotImplementedError, RuntimeError):
            logger.debug("cannot handle %s on this platform", name)
            continue
        installed.append(int(signum))
    return installed


async def _run(config: FeedConfig, sink: BinaryIO) -> RunSummary:
    loop = asyncio.get_running_loop()
    shutdown = asyncio.Event()
    installed = install_signal_handlers(loop, shutdown)
    try:
        return await run_feed(config, sink, shutdown=shutdown)
    finally:
        for signum in installed:
            loop.remove_signal_handler(signum)


class _ArgumentParser(argparse.ArgumentParser):
    """Reports usage errors as ``ConfigError`` instead of exiting with status 2."""

    def error(self, message: str) -> NoReturn:
        raise ConfigError(f"{self.prog}: {message}")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="vesti-rss",
        description="Read the vesti.ru news API and write an RSS 2.0 feed to standard output",
    )
    parser.add_argument(
        "--max-items",
        type=int,
        help=f"number of news items to fetch, any value from {MIN_ITEMS} to {MAX_ITEMS} (default: 100)",
    )
    parser.add_argument(
        "--log-level",
        help="logging level, one of: trace, info, warning, error (default: info)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to a YAML configuration file",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        help="Also write logs to this file",
    )
    return parser


def main(argv: Optional[List[str]] = None, sink: Optional[BinaryIO] = None) -> int:
    """CLI entry point."""
    try:
        args = build_parser().parse_args(argv)
    except ConfigError as exc:
        setup_logging()
        logger.error("%s", exc)
        return 1

    # log errors from option handling at the default level
    setup_logging(log_file=args.log_file)

    try:
        config = FeedConfig.from_file(args.config) if args.config else FeedConfig()
        config = config.with_overrides(max_items=args.max_items, log_level=args.log_level)
        setup_logging(level=parse_log_level(config.log_level), log_file=args.log_file)
    except ConfigError as exc:
        logger.error("%s", exc)
        return 1

    if sink is None:
        sink = sys.stdout.buffer

    summary = asyncio.run(_run(config, sink))
    logger.debug("run summary: %s", summary.to_dict())

    try:
        sink.flush()
    except (OSError, ValueError) as exc:
        logger.error("flushing output: %s", exc)
        return 1

    return summary.exit_code()


if __name__ == "__main__":
    sys.exit(main())
