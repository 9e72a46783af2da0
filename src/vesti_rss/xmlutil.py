"""XML text escaping.

Text is escaped for use as XML character data: the five reserved characters
become named entities and anything outside the XML 1.0 character ranges
(section 2.2 of the XML recommendation) becomes the six-character marker
``\\uFFFD``. Malformed input reaches us either as lone surrogates in a ``str``
or as undecodable bytes; both are replaced by one marker per input unit.
"""

from __future__ import annotations

import re
from typing import List, Union

INVALID_MARKER = "\\uFFFD"

_ENTITIES = {
    '"': "&quot;",
    "'": "&apos;",
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
}

# legal XML 1.0 character ranges, inclusive
_LEGAL_RANGES = (
    (0x09, 0x09),
    (0x0A, 0x0A),
    (0x0D, 0x0D),
    (0x20, 0xD7FF),
    (0xE000, 0xFFFD),
    (0x10000, 0x10FFFF),
)

# reserved characters, or anything outside the legal ranges
_ESCAPE_RE = re.compile(
    "[\"'&<>]|[^"
    + "".join(f"{re.escape(chr(lo))}-{re.escape(chr(hi))}" for lo, hi in _LEGAL_RANGES)
    + "]"
)


def _replace(match: "re.Match[str]") -> str:
    return _ENTITIES.get(match.group(), INVALID_MARKER)


def _as_text(text: Union[str, bytes]) -> str:
    if isinstance(text, (bytes, bytearray)):
        # every undecodable byte becomes one lone surrogate, hence one marker
        return bytes(text).decode("utf-8", errors="surrogateescape")
    return text


def append_escaped(out: List[str], text: Union[str, bytes]) -> List[str]:
    """Append the escaped form of ``text`` to the ``out`` buffer and return it."""
    text = _as_text(text)
    last = 0
    for match in _ESCAPE_RE.finditer(text):
        start = match.start()
        if start > last:
            out.append(text[last:start])
        out.append(_replace(match))
        last = match.end()
    if last < len(text):
        out.append(text[last:])
    return out


def escape(text: Union[str, bytes]) -> str:
    """Return ``text`` escaped for XML character data."""
    text = _as_text(text)
    if _ESCAPE_RE.search(text) is None:
        return text
    return _ESCAPE_RE.sub(_replace, text)


def append_tag(out: List[str], tag: str, text: Union[str, bytes]) -> List[str]:
    """Append ``<tag>text</tag>`` with the text escaped."""
    out.append(f"<{tag}>")
    append_escaped(out, text)
    out.append(f"</{tag}>")
    return out


def tag(name: str, text: Union[str, bytes]) -> str:
    """Return ``<name>text</name>`` with the text escaped."""
    return f"<{name}>{escape(text)}</{name}>"
