"""Activity feed decoder.

Turns the tracker's list-style activity feed (RSS) into
:class:`~tracker_relay.models.events.ActivityEvent` values.

Each ``item`` is read positionally: its first four children must be
``title``, ``link``, ``description`` and ``pubDate``, in that order. The
layout is rigid, so any deviation fails the whole feed rather than letting
the reads drift out of step with the document. A title that does not carry
the ``PREFIX-NUMBER:`` marker only costs that one item.

The feed lists newest first; decoded events are returned oldest first.
"""

from __future__ import annotations

import logging
import re
from datetime import UTC, datetime
from typing import BinaryIO
from xml.etree.ElementTree import Element

from tracker_relay.exceptions import FeedDecodeError, TitleParseError
from tracker_relay.models.events import ActivityEvent, TrackedItem
from tracker_relay.sources.xml_events import DEFAULT_CHUNK_SIZE, START, iter_xml_events
from tracker_relay.utils.time_utils import is_after

logger = logging.getLogger(__name__)

FEED_SOURCE = "feed"
ITEM_TAG = "item"
ITEM_FIELDS: tuple[str, ...] = ("title", "link", "description", "pubDate")

PUBLISH_DATE_FORMAT = "%a, %d %b %Y %H:%M:%S"
# "Wed, 09 Jul 2014 17:38:36 UT": keep everything up to the seconds, drop the zone token
_PUBLISH_DATE_RE = re.compile(
    r"^\s*([A-Za-z]{3},\s+\d{1,2}\s+[A-Za-z]{3}\s+\d{4}\s+\d{2}:\d{2}:\d{2})"
)


def parse_title(title: str) -> tuple[str, int]:
    """Split ``"ABC-12: Fix bug"`` into ``("ABC", 12)``.

    Raises:
        TitleParseError: If the ``PREFIX-NUMBER:`` marker is missing or malformed.
    """
    dash = title.find("-")
    colon = title.find(":", dash + 1) if dash >= 0 else -1
    if dash < 0 or colon < 0:
        raise TitleParseError("Title has no 'PREFIX-NUMBER:' marker", title=title)

    prefix = title[:dash].strip()
    number = title[dash + 1 : colon].strip()
    if not prefix:
        raise TitleParseError("Title has an empty namespace prefix", title=title)
    try:
        return prefix, int(number)
    except ValueError as e:
        raise TitleParseError(f"Title number '{number}' is not numeric", title=title) from e


def parse_publish_date(text: str) -> datetime:
    """Parse a feed publish date, ignoring any trailing timezone token (UTC assumed).

    Raises:
        FeedDecodeError: If the text does not match ``Day, DD Mon YYYY HH:MM:SS``.
    """
    match = _PUBLISH_DATE_RE.match(text)
    if not match:
        raise FeedDecodeError("Unparsable publish date", source=FEED_SOURCE, value=text)
    try:
        parsed = datetime.strptime(" ".join(match.group(1).split()), PUBLISH_DATE_FORMAT)
    except ValueError as e:
        raise FeedDecodeError(
            "Unparsable publish date", source=FEED_SOURCE, value=text
        ) from e
    return parsed.replace(tzinfo=UTC)


class FeedDecoder:
    """Decodes an activity feed stream into activity events."""

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.chunk_size = chunk_size

    def decode(self, stream: BinaryIO, cutoff: datetime | None = None) -> list[ActivityEvent]:
        """Decode ``stream`` into events published strictly after ``cutoff``.

        Args:
            stream: Open binary stream of the feed document (not closed here).
            cutoff: Only events published after this instant are returned;
                ``None`` returns every event.

        Returns:
            Events ordered oldest first.

        Raises:
            FeedDecodeError: If the feed is malformed.
            StreamError: If reading the stream fails.
        """
        events: list[ActivityEvent] = []
        fields: dict[str, str] = {}
        in_item = False
        depth = 0

        for event, element, name in iter_xml_events(
            stream, error_cls=FeedDecodeError, source=FEED_SOURCE, chunk_size=self.chunk_size
        ):
            if not in_item:
                if event == START and name == ITEM_TAG:
                    in_item, depth, fields = True, 0, {}
                continue

            if event == START:
                if depth == 0 and len(fields) < len(ITEM_FIELDS):
                    expected = ITEM_FIELDS[len(fields)]
                    if name != expected:
                        raise FeedDecodeError(
                            f"Unexpected <{name}> in feed item, expected <{expected}>",
                            source=FEED_SOURCE,
                            position=len(fields),
                        )
                depth += 1
                continue

            if depth == 0:
                # </item>
                in_item = False
                if len(fields) < len(ITEM_FIELDS):
                    raise FeedDecodeError(
                        f"Feed item ended before <{ITEM_FIELDS[len(fields)]}>",
                        source=FEED_SOURCE,
                    )
                activity = self._build_event(fields)
                element.clear()
                if activity is not None and is_after(activity.published_at, cutoff):
                    events.append(activity)
                continue

            depth -= 1
            if depth == 0 and len(fields) < len(ITEM_FIELDS):
                fields[ITEM_FIELDS[len(fields)]] = _text_of(element)

        if in_item:
            raise FeedDecodeError("Feed ended inside an item", source=FEED_SOURCE)

        events.reverse()
        logger.debug(f"Decoded {len(events)} feed event(s) after {cutoff}")
        return events

    def _build_event(self, fields: dict[str, str]) -> ActivityEvent | None:
        title = fields["title"].strip()
        published_at = parse_publish_date(fields["pubDate"])
        try:
            prefix, number = parse_title(title)
        except TitleParseError as e:
            logger.warning(f"Skipping feed item: {e}")
            return None

        item = TrackedItem(
            namespace_prefix=prefix,
            numeric_id=number,
            title=title,
            description=fields["description"].replace("\n", "").strip(),
            link=fields["link"].strip(),
        )
        activity = ActivityEvent(item=item, published_at=published_at)
        logger.debug(f"Feed event decoded: {activity.key}")
        return activity


def decode_feed(
    stream: BinaryIO,
    cutoff: datetime | None = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> list[ActivityEvent]:
    """Decode an activity feed stream; see :meth:`FeedDecoder.decode`."""
    return FeedDecoder(chunk_size).decode(stream, cutoff)


def _text_of(element: Element) -> str:
    return "".join(element.itertext())
