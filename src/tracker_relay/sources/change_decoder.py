"""Change-history decoder.

Turns one item's change-history document into
:class:`~tracker_relay.models.events.EditSession` values in a single
streaming pass.

Document shape::

    <changes>
      <issue>                                   item header: creation pseudo-change
        <field name="updaterName"><value>rob</value></field>
        <field name="updated"><value>1404927516756</value></field>
        ...
      </issue>
      <change>                                  one edit session
        <field name="updaterName"><value>rob</value></field>
        <field name="updated"><value>1404927529000</value></field>
        <field name="State"><oldValue>Open</oldValue><newValue>Fixed</newValue></field>
        <comment authorFullName="Rob" text="done" created="1404927529000"/>
      </change>
      ...
    </changes>

Bookkeeping fields (``updaterName``, ``updated``) and the creation markers
(``created``, ``updaterFullName``) share the field grammar with real field
changes; :class:`~tracker_relay.models.enums.FieldContext` decides what a
``value`` node means. Comments are captured wherever they appear.

Everything is filtered against a cutoff: a field change or comment is kept
only if its own timestamp is strictly after it. A document that never closes
a newsworthy ``change`` block is reported as a newly observed item.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import BinaryIO
from xml.etree.ElementTree import Element

from tracker_relay.exceptions import ChangeHistoryDecodeError
from tracker_relay.models.enums import FieldContext, ScanState
from tracker_relay.models.events import Comment, EditSession, FieldChange, TrackedItem
from tracker_relay.sources.xml_events import DEFAULT_CHUNK_SIZE, START, iter_xml_events
from tracker_relay.utils.time_utils import (
    ensure_utc,
    format_resolved_timestamp,
    from_epoch_millis,
)

logger = logging.getLogger(__name__)

CHANGE_TAG = "change"
FIELD_TAG = "field"
COMMENT_TAG = "comment"
VALUE_TAG = "value"
OLD_VALUE_TAG = "oldValue"
NEW_VALUE_TAG = "newValue"

FIELD_NAME_ATTR = "name"
COMMENT_AUTHOR_ATTR = "authorFullName"
COMMENT_AUTHOR_FALLBACK_ATTR = "author"
COMMENT_TEXT_ATTR = "text"
COMMENT_CREATED_ATTR = "created"


class ChangeHistoryScan:
    """Finite-state machine over one change-history document.

    Fed start/end element events in document order; :meth:`finish` returns
    the sessions found. Per-field state (name, old/new value) is reset when a
    field closes; updater and update time persist, since they apply to the
    whole enclosing change block.
    """

    def __init__(self, item: TrackedItem, cutoff: datetime | None = None):
        self.item = item
        self.cutoff = ensure_utc(cutoff) if cutoff is not None else None
        self.source = item.key

        self.state = ScanState.IDLE
        self._field_parent = ScanState.IDLE

        self.context = FieldContext.NONE
        self.field_name = ""
        self.old_value = ""
        self.new_value = ""

        self.updater = ""
        self.updated_at: datetime | None = None
        self.created_at: datetime | None = None
        self.creator: str | None = None

        self.changes: list[FieldChange] = []
        self.comments: list[Comment] = []
        self.sessions: list[EditSession] = []

        self.change_blocks = 0
        self.flushed = False

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def on_start(self, name: str, element: Element) -> None:
        if name == CHANGE_TAG:
            self._enter_change()
        elif name == FIELD_TAG:
            self._enter_field(element)
        elif name == COMMENT_TAG:
            self._read_comment(element)
        else:
            marker = FieldContext.for_marker_element(name)
            if marker is not None:
                self.context = marker

    def on_end(self, name: str, element: Element) -> None:
        if name == NEW_VALUE_TAG:
            self.new_value = _text_of(element)
        elif name == OLD_VALUE_TAG:
            self.old_value = _text_of(element)
        elif name == VALUE_TAG:
            self._read_value(_text_of(element))
        elif name == FIELD_TAG:
            self._leave_field()
        elif name == CHANGE_TAG:
            self._leave_change()
            element.clear()

    def finish(self) -> list[EditSession]:
        """Apply the end-of-document fallback and return the sessions."""
        if not self.flushed:
            self._fallback()
        elif self.comments:
            # Comments after the last change block
            self.sessions.append(EditSession.from_comments(self.item, self.comments))
        return self.sessions

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _enter_change(self) -> None:
        if self.state is not ScanState.IDLE:
            raise ChangeHistoryDecodeError(
                f"<{CHANGE_TAG}> opened while {self.state.value}", source=self.source
            )
        self.state = ScanState.IN_CHANGE
        self.change_blocks += 1

    def _enter_field(self, element: Element) -> None:
        if self.state is ScanState.IN_FIELD:
            raise ChangeHistoryDecodeError(
                f"<{FIELD_TAG}> nested in another field", source=self.source, field=self.field_name
            )
        field_name = element.get(FIELD_NAME_ATTR)
        if field_name is None:
            raise ChangeHistoryDecodeError(
                f"<{FIELD_TAG}> without a '{FIELD_NAME_ATTR}' attribute", source=self.source
            )
        self._field_parent = self.state
        self.state = ScanState.IN_FIELD
        self.field_name = field_name
        self.context = FieldContext.for_field(field_name)

    def _read_value(self, text: str) -> None:
        if self.context is FieldContext.UPDATER:
            self.updater = text.strip()
        elif self.context is FieldContext.UPDATED:
            self.updated_at = self._parse_millis(text, "updated")
        elif self.context is FieldContext.CREATED:
            self.created_at = self._parse_millis(text, "created")
        elif self.context is FieldContext.CREATOR:
            self.creator = text.strip()

    def _read_comment(self, element: Element) -> None:
        author = element.get(COMMENT_AUTHOR_ATTR, element.get(COMMENT_AUTHOR_FALLBACK_ATTR))
        text = element.get(COMMENT_TEXT_ATTR)
        created = element.get(COMMENT_CREATED_ATTR)
        if author is None or text is None or created is None:
            missing = [
                attr
                for attr, value in (
                    (COMMENT_AUTHOR_ATTR, author),
                    (COMMENT_TEXT_ATTR, text),
                    (COMMENT_CREATED_ATTR, created),
                )
                if value is None
            ]
            raise ChangeHistoryDecodeError(
                "Comment is missing attributes", source=self.source, missing=",".join(missing)
            )

        comment = Comment(
            author=author, text=text, created_at=self._parse_millis(created, "comment created")
        )
        if self._passes(comment.created_at):
            self.comments.append(comment)

    def _leave_field(self) -> None:
        if self.new_value.strip():
            if self._field_parent is not ScanState.IN_CHANGE:
                # No change block to report it with
                logger.warning(
                    f"{self.source}: field '{self.field_name}' outside a change block ignored"
                )
            elif self.updated_at is None:
                raise ChangeHistoryDecodeError(
                    "Field change without an update timestamp",
                    source=self.source,
                    field=self.field_name,
                )
            elif self._passes(self.updated_at):
                self.changes.append(self._build_change())

        self.field_name = ""
        self.old_value = ""
        self.new_value = ""
        self.context = FieldContext.NONE
        self.state = self._field_parent

    def _leave_change(self) -> None:
        if self._passes(self.updated_at) or self.comments:
            self.flushed = True
            logger.debug(f"{self.source}: change block by {self.updater!r} at {self.updated_at}")
            # changes are only collected once an update time is known
            session = EditSession.from_changes(
                self.item, self.updater, self.updated_at, self.changes, self.comments
            )
            if session is not None:
                self.sessions.append(session)

        self.changes = []
        self.comments = []
        self.state = ScanState.IDLE

    def _fallback(self) -> None:
        timestamp = self.updated_at or self.created_at
        if timestamp is None:
            if self.comments:
                self.sessions.append(EditSession.from_comments(self.item, self.comments))
            else:
                logger.warning(f"{self.source}: change history carries no timestamps")
            return
        if not self._passes(timestamp):
            return

        if self.change_blocks:
            # A change block was seen but never reported; the document may be
            # partial rather than describing a brand-new item.
            logger.warning(
                f"{self.source}: {self.change_blocks} change block(s) but none reported, "
                "falling back to header activity"
            )

        if self.comments:
            self.sessions.append(EditSession.from_comments(self.item, self.comments))
            return

        creator = self.creator or self.updater
        created_item = self.item.as_created(self.created_at or timestamp, creator)
        logger.info(f"{self.source}: no change history, reporting as new item by {creator!r}")
        self.sessions.append(EditSession.creation(created_item, self.updater or creator, timestamp))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _passes(self, timestamp: datetime | None) -> bool:
        if self.cutoff is None:
            return True
        return timestamp is not None and timestamp > self.cutoff

    def _build_change(self) -> FieldChange:
        current = self.new_value.strip()
        if self.context is FieldContext.RESOLVED:
            current = format_resolved_timestamp(self._parse_millis(current, self.field_name))
        return FieldChange(
            updater=self.updater,
            updated_at=self.updated_at,
            field_name=self.field_name.strip(),
            prior_value=self.old_value.strip(),
            current_value=current,
        )

    def _parse_millis(self, text: str, what: str) -> datetime:
        try:
            return from_epoch_millis(int(text.strip()))
        except (ValueError, OverflowError) as e:
            raise ChangeHistoryDecodeError(
                f"Malformed epoch timestamp for '{what}'", source=self.source, value=text
            ) from e


class ChangeHistoryDecoder:
    """Decodes change-history streams into edit sessions."""

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.chunk_size = chunk_size

    def decode(
        self, stream: BinaryIO, item: TrackedItem, cutoff: datetime | None = None
    ) -> list[EditSession]:
        """Decode the change history of ``item`` read from ``stream``.

        Args:
            stream: Open binary stream of the document (not closed here).
            item: The item the history belongs to, as known from the feed.
            cutoff: Only activity strictly after this instant is reported;
                ``None`` reports everything.

        Returns:
            Edit sessions in document order.

        Raises:
            ChangeHistoryDecodeError: If the document is malformed.
            StreamError: If reading the stream fails.
        """
        scan = ChangeHistoryScan(item, cutoff)
        for event, element, name in iter_xml_events(
            stream,
            error_cls=ChangeHistoryDecodeError,
            source=item.key,
            chunk_size=self.chunk_size,
        ):
            if event == START:
                scan.on_start(name, element)
            else:
                scan.on_end(name, element)

        sessions = scan.finish()
        logger.debug(f"{item.key}: decoded {len(sessions)} edit session(s) after {cutoff}")
        return sessions


def decode_changes(
    stream: BinaryIO,
    item: TrackedItem,
    cutoff: datetime | None = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> list[EditSession]:
    """Decode a change-history stream; see :meth:`ChangeHistoryDecoder.decode`."""
    return ChangeHistoryDecoder(chunk_size).decode(stream, item, cutoff)


def _text_of(element: Element) -> str:
    return "".join(element.itertext())
