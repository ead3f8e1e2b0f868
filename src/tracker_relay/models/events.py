"""Domain records produced by the decoders.

Everything here is an immutable value: records are created once during a
decode pass and handed to the caller. The only "update" operation,
:meth:`ActivityEvent.with_published_at`, returns a new event.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime

from tracker_relay.models.enums import SessionKind
from tracker_relay.utils.time_utils import ensure_utc, format_key_timestamp

KEY_FIELD_SEPARATOR = "::"


@dataclass(frozen=True)
class TrackedItem:
    """An issue in the tracker.

    Identity is ``(namespace_prefix, numeric_id)``; the descriptive fields do
    not take part in equality or hashing, so the same issue decoded from the
    feed and from its change history compares equal.
    """

    namespace_prefix: str
    numeric_id: int
    title: str = field(default="", compare=False)
    description: str = field(default="", compare=False)
    link: str = field(default="", compare=False)
    created_at: datetime | None = field(default=None, compare=False)
    creator: str | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if not self.namespace_prefix:
            raise ValueError("namespace_prefix must not be empty")
        if self.created_at is not None:
            object.__setattr__(self, "created_at", ensure_utc(self.created_at))

    @property
    def key(self) -> str:
        """Issue key as shown by the tracker, e.g. ``ABC-12``."""
        return f"{self.namespace_prefix}-{self.numeric_id}"

    @property
    def title_text(self) -> str:
        """Title without the leading ``ABC-12:`` marker."""
        marker, sep, rest = self.title.partition(":")
        if sep and marker.strip() == self.key:
            return rest.strip()
        return self.title

    def as_created(self, created_at: datetime, creator: str) -> TrackedItem:
        """Copy of this item carrying creation details."""
        return replace(self, created_at=created_at, creator=creator)


@dataclass(frozen=True)
class ActivityEvent:
    """One entry of the activity feed: an item touched at a point in time."""

    item: TrackedItem
    published_at: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "published_at", ensure_utc(self.published_at))

    @property
    def key(self) -> str:
        """Unique key: ``PREFIX-NUMBER::YYYY-MM-DD HH:MM:SS`` (UTC)."""
        return f"{self.item.key}{KEY_FIELD_SEPARATOR}{format_key_timestamp(self.published_at)}"

    def with_published_at(self, published_at: datetime) -> ActivityEvent:
        """Copy of this event with a different publish time."""
        return replace(self, published_at=published_at)


@dataclass(frozen=True)
class FieldChange:
    """One field mutation on one item at one instant."""

    updater: str
    updated_at: datetime
    field_name: str
    prior_value: str
    current_value: str

    def __post_init__(self) -> None:
        if not self.current_value:
            raise ValueError(f"field change for '{self.field_name}' has no current value")
        object.__setattr__(self, "updated_at", ensure_utc(self.updated_at))

    def __str__(self) -> str:
        if self.prior_value:
            return f"{self.field_name}: {self.prior_value} -> {self.current_value}"
        return f"{self.field_name}: {self.current_value}"


@dataclass(frozen=True)
class Comment:
    """A comment left on an item."""

    author: str
    text: str
    created_at: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "created_at", ensure_utc(self.created_at))


@dataclass(frozen=True)
class EditSession:
    """Everything one person did to one item at effectively one instant.

    The unit downstream delivery renders as a single notification.

    Attributes:
        item: The item edited (for creation sessions, carries creation details).
        updater: Who made the changes (or wrote the first comment).
        updated_at: When.
        changes: Field changes in document order.
        comments: Comments in document order.
        kind: What the session reports; validated against its contents.
    """

    item: TrackedItem
    updater: str
    updated_at: datetime
    changes: tuple[FieldChange, ...] = ()
    comments: tuple[Comment, ...] = ()
    kind: SessionKind = SessionKind.UPDATE

    def __post_init__(self) -> None:
        object.__setattr__(self, "updated_at", ensure_utc(self.updated_at))
        object.__setattr__(self, "changes", tuple(self.changes))
        object.__setattr__(self, "comments", tuple(self.comments))
        if self.kind is SessionKind.UPDATE and not self.changes:
            raise ValueError("update session requires at least one field change")
        if self.kind is SessionKind.COMMENT and (self.changes or not self.comments):
            raise ValueError("comment session requires comments and no field changes")
        if self.kind is SessionKind.CREATION:
            if self.changes or self.comments:
                raise ValueError("creation session carries no changes or comments")
            if self.item.created_at is None:
                raise ValueError("creation session requires the item's creation time")

    @classmethod
    def from_changes(
        cls,
        item: TrackedItem,
        updater: str,
        updated_at: datetime | None,
        changes: list[FieldChange],
        comments: list[Comment],
    ) -> EditSession | None:
        """Build the session for one change block, or ``None`` if it is empty.

        With no field changes the session is attributed to the first
        comment's author and time; comments carry their own authorship.
        """
        if changes:
            if updated_at is None:
                raise ValueError("update session requires an update time")
            return cls(item, updater, updated_at, tuple(changes), tuple(comments))
        if comments:
            return cls.from_comments(item, comments)
        return None

    @classmethod
    def from_comments(cls, item: TrackedItem, comments: list[Comment]) -> EditSession:
        """Comment-only session attributed to the first comment."""
        first = comments[0]
        return cls(
            item,
            first.author,
            first.created_at,
            comments=tuple(comments),
            kind=SessionKind.COMMENT,
        )

    @classmethod
    def creation(cls, item: TrackedItem, updater: str, updated_at: datetime) -> EditSession:
        """Session reporting that ``item`` was newly observed."""
        return cls(item, updater, updated_at, kind=SessionKind.CREATION)

    @property
    def is_creation(self) -> bool:
        return self.kind is SessionKind.CREATION

    @property
    def key(self) -> str:
        """``PREFIX-NUMBER::timestamp`` of this session."""
        return f"{self.item.key}{KEY_FIELD_SEPARATOR}{format_key_timestamp(self.updated_at)}"
