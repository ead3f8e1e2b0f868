"""Stream-opening collaborators.

The decoders never locate or open their input. A :class:`StreamProvider`
hands them an open binary stream, scoped by a context manager so it is
released on every exit path.
"""

from __future__ import annotations

import logging
from contextlib import AbstractContextManager
from pathlib import Path
from typing import BinaryIO, Protocol

from tracker_relay.config.paths import CHANGES_DIR, CHANGES_FILE_EXTENSION, FEED_FILENAME
from tracker_relay.exceptions import StreamError
from tracker_relay.models.events import TrackedItem

logger = logging.getLogger(__name__)


class StreamProvider(Protocol):
    """Opens the feed stream (no item) or an item's change-history stream."""

    def open_stream(self, item: TrackedItem | None = None) -> AbstractContextManager[BinaryIO]:
        """Return a context manager yielding an open binary stream."""
        ...


class DirectoryStreamProvider:
    """Serves streams from a snapshot directory.

    Layout::

        <root>/feed.xml
        <root>/changes/<PREFIX>-<NUMBER>.xml
    """

    def __init__(self, root: Path):
        self.root = Path(root)

    @property
    def feed_path(self) -> Path:
        return self.root / FEED_FILENAME

    def changes_path(self, item: TrackedItem) -> Path:
        return self.root / CHANGES_DIR / f"{item.key}{CHANGES_FILE_EXTENSION}"

    def open_stream(self, item: TrackedItem | None = None) -> AbstractContextManager[BinaryIO]:
        """Open the feed (``item is None``) or the item's change history.

        Raises:
            StreamError: If the file cannot be opened.
        """
        path = self.feed_path if item is None else self.changes_path(item)
        source = "feed" if item is None else item.key
        logger.debug(f"Opening {source} stream from {path}")
        try:
            return open(path, "rb")
        except OSError as e:
            raise StreamError(f"Cannot open {path}: {e.strerror}", source=source) from e
