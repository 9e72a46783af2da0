"""Incremental RSS 2.0 writer.

The document is streamed: the header is written once, items are written and
flushed per batch, and the footer is written once at the end of a successful
run. Nothing is buffered beyond the batch being serialized.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterable, List, Optional, Union

from jinja2 import Environment, FileSystemLoader

from .config import FeedConfig
from .exceptions import OutputError
from .models import NormalizedRecord
from .parser_utils import format_pub_date
from .xmlutil import append_tag, escape

TEMPLATE_DIR = Path(__file__).parent / "templates"
HEADER_TEMPLATE = "channel_header.xml"
FOOTER = "</channel>\n</rss>\n"


@dataclass(frozen=True)
class ChannelInfo:
    """Channel metadata rendered into the document header."""

    title: str
    link: str
    description: str

    @classmethod
    def from_config(cls, config: FeedConfig) -> "ChannelInfo":
        return cls(
            title=config.channel_title,
            link=config.channel_link,
            description=config.channel_description,
        )


def render_item(record: NormalizedRecord, out: Optional[List[str]] = None) -> List[str]:
    """Append the ``<item>`` element for ``record`` to ``out``."""
    if out is None:
        out = []
    out.append("<item>")
    append_tag(out, "title", record.title)
    append_tag(out, "description", record.summary)
    append_tag(out, "link", record.link)
    out.append(f'<guid isPermaLink="false">{record.id:d}</guid>')
    out.append(f"<pubDate>{format_pub_date(record.published_at)}</pubDate>")
    out.append("</item>\n")
    return out


class RSSWriter:
    """Streams an RSS document to a binary sink as UTF-8."""

    def __init__(
        self,
        sink: BinaryIO,
        channel: ChannelInfo,
        *,
        template_dir: Optional[Union[str, Path]] = None,
    ) -> None:
        self.sink = sink
        self.channel = channel
        self.items_written = 0
        self.header_written = False
        self.footer_written = False

        self.jinja_env = Environment(
            loader=FileSystemLoader(str(template_dir or TEMPLATE_DIR)),
            autoescape=False,
            keep_trailing_newline=True,
        )
        self.jinja_env.filters["xml"] = escape

    def write_header(self) -> None:
        if self.header_written:
            raise OutputError("document header already written")
        template = self.jinja_env.get_template(HEADER_TEMPLATE)
        self._write(
            template.render(
                title=self.channel.title,
                link=self.channel.link,
                description=self.channel.description,
            )
        )
        self.header_written = True

    def write_items(self, records: Iterable[NormalizedRecord]) -> int:
        """Write one ``<item>`` per record and flush; returns the number written."""
        if not self.header_written or self.footer_written:
            raise OutputError("items can only be written between header and footer")

        out: List[str] = []
        count = 0
        for record in records:
            render_item(record, out)
            count += 1

        if count:
            self._write("".join(out))
            self.items_written += count
        return count

    def write_footer(self) -> None:
        if not self.header_written:
            raise OutputError("document header was not written")
        if self.footer_written:
            raise OutputError("document footer already written")
        self._write(FOOTER)
        self.footer_written = True

    def _write(self, text: str) -> None:
        try:
            self.sink.write(text.encode("utf-8"))
            self.sink.flush()
        except (OSError, ValueError) as exc:
            raise OutputError(f"writing to output: {exc}") from exc
