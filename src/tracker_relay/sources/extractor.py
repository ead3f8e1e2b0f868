"""Extraction orchestration: feed first, then each touched item's history.

Architecture:
    EditSessionsExtractor → FeedDecoder          (feed stream)
                          → ChangeHistoryDecoder (one stream per event)

Example:
    >>> extractor = EditSessionsExtractor(DirectoryStreamProvider(Path("snapshot")))
    >>> for session in extractor.latest_edit_sessions(cutoff):
    ...     print(session.key, session.updater)
"""

from __future__ import annotations

import logging
from datetime import datetime

from tracker_relay.models.events import ActivityEvent, EditSession
from tracker_relay.sources.change_decoder import ChangeHistoryDecoder
from tracker_relay.sources.feed_decoder import FeedDecoder
from tracker_relay.sources.streams import StreamProvider
from tracker_relay.sources.xml_events import DEFAULT_CHUNK_SIZE

logger = logging.getLogger(__name__)


class EditSessionsExtractor:
    """Finds what changed on which item, by whom, since a cutoff.

    Strictly sequential: one feed decode, then one change-history decode per
    event, each on its own scoped stream. Decode failures propagate; the
    caller decides whether to skip or retry.
    """

    def __init__(self, stream_provider: StreamProvider, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.stream_provider = stream_provider
        self.feed_decoder = FeedDecoder(chunk_size)
        self.change_decoder = ChangeHistoryDecoder(chunk_size)

    def latest_events(self, cutoff: datetime | None = None) -> list[ActivityEvent]:
        """Events published after ``cutoff``, oldest first."""
        with self.stream_provider.open_stream() as stream:
            return self.feed_decoder.decode(stream, cutoff)

    def edits(self, event: ActivityEvent, cutoff: datetime | None = None) -> list[EditSession]:
        """Edit sessions on ``event``'s item after ``cutoff``, in document order."""
        with self.stream_provider.open_stream(event.item) as stream:
            return self.change_decoder.decode(stream, event.item, cutoff)

    def latest_edit_sessions(self, cutoff: datetime | None = None) -> list[EditSession]:
        """All edit sessions after ``cutoff``, grouped by event in feed order.

        Raises:
            DecodeError: If the feed or any item's history cannot be decoded.
        """
        logger.debug(f"Edits since: {cutoff}")
        sessions: list[EditSession] = []
        for event in self.latest_events(cutoff):
            sessions.extend(self.edits(event, cutoff))
        return sessions
