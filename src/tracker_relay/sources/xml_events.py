"""Incremental XML event reading shared by the feed and change-history decoders."""

from __future__ import annotations

from collections.abc import Iterator
from typing import BinaryIO
from xml.etree.ElementTree import Element, ParseError, XMLPullParser

from tracker_relay.exceptions import DecodeError, StreamError

DEFAULT_CHUNK_SIZE = 64 * 1024

START = "start"
END = "end"


def local_name(tag: str) -> str:
    """Strip a ``{namespace}`` prefix from an element tag."""
    if tag.startswith("{"):
        return tag.rsplit("}", 1)[1]
    return tag


def iter_xml_events(
    stream: BinaryIO,
    *,
    error_cls: type[DecodeError],
    source: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Iterator[tuple[str, Element, str]]:
    """Yield ``(event, element, local_name)`` for every start/end tag in ``stream``.

    The stream is read in ``chunk_size`` pieces and never closed here; the
    caller that opened it owns it. Element text is only complete on ``end``.

    Raises:
        StreamError: If reading the stream fails.
        error_cls: If the bytes are not well-formed XML (including truncation).
    """
    parser = XMLPullParser(events=(START, END))
    while True:
        try:
            chunk = stream.read(chunk_size)
        except OSError as e:
            raise StreamError(f"Failed to read stream: {e}", source=source) from e
        if not chunk:
            break
        try:
            parser.feed(chunk)
        except ParseError as e:
            raise error_cls(f"Malformed XML: {e}", source=source) from e
        yield from _drain(parser)

    try:
        parser.close()
    except ParseError as e:
        raise error_cls(f"Truncated or malformed XML: {e}", source=source) from e
    yield from _drain(parser)


def _drain(parser: XMLPullParser) -> Iterator[tuple[str, Element, str]]:
    for event, element in parser.read_events():
        yield event, element, local_name(element.tag)
