"""Polling-cycle driver.

One call to :meth:`EventListener.check_for_new_events` is one cycle: read
the stored cutoff, decode what happened since, hand every session to the
delivery sink, and advance the cutoff as events complete. Scheduling the
cycles is the host's business.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Protocol

from tracker_relay.exceptions import DecodeError
from tracker_relay.models.events import ActivityEvent, EditSession
from tracker_relay.services.cutoff_store import CutoffStore
from tracker_relay.sources.channels import ChannelMapper
from tracker_relay.sources.extractor import EditSessionsExtractor

logger = logging.getLogger(__name__)


class SessionSink(Protocol):
    """Delivery collaborator: renders and posts a session to a channel."""

    def deliver(self, channel: str, session: EditSession) -> None: ...


class EventListener:
    """Runs polling cycles over an extractor and a delivery sink."""

    def __init__(
        self,
        extractor: EditSessionsExtractor,
        sink: SessionSink,
        channel_mapper: ChannelMapper,
        cutoff_store: CutoffStore,
    ):
        self.extractor = extractor
        self.sink = sink
        self.channel_mapper = channel_mapper
        self.cutoff_store = cutoff_store

    def check_for_new_events(self) -> int:
        """Run one cycle.

        Every event is decoded against the cutoff loaded at the start of the
        cycle. After an event's sessions are delivered the stored cutoff moves
        up to that event's publish time. Only once every event has gone
        through does it move to the latest publish or session time seen, so
        the next cycle does not repeat them. A decode failure ends the cycle
        at that event; it is retried next cycle.

        Returns:
            Number of events fully processed.

        Raises:
            DecodeError: If the feed itself cannot be decoded.
        """
        cutoff = self.cutoff_store.load()
        events = self.extractor.latest_events(cutoff)
        logger.info(f"{len(events)} event(s) since {cutoff}")

        processed = 0
        latest: datetime | None = None
        for event in events:
            try:
                sessions = self.extractor.edits(event, cutoff)
            except DecodeError as e:
                logger.error(f"Stopping cycle at {event.key}: {e}", exc_info=True)
                return processed

            channel = self.channel_mapper.get_channel(event.item)
            for session in sessions:
                logger.info(f"Delivering {session.kind.value} {session.key} to #{channel}")
                self.sink.deliver(channel, session)

            # Session times can run ahead of later events' publish times, so
            # they only count once the whole cycle has gone through.
            self.cutoff_store.save(event.published_at)
            latest = _latest_timestamp(latest, event, sessions)
            processed += 1

        if latest is not None:
            self.cutoff_store.save(latest)
        return processed


def _latest_timestamp(
    current: datetime | None, event: ActivityEvent, sessions: list[EditSession]
) -> datetime:
    candidates = [event.published_at, *(session.updated_at for session in sessions)]
    if current is not None:
        candidates.append(current)
    return max(candidates)
