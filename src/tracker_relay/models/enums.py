"""Enum types for tracker-relay.

This module provides the closed tag sets the decoders and the domain model
agree on. Using enums instead of string constants keeps the change-history
grammar auditable: every synthetic field name the decoder reacts to is
listed here and nowhere else.
"""

from enum import Enum


class SessionKind(str, Enum):
    """What an edit session reports."""

    UPDATE = "update"  # one or more field changes, comments optional
    COMMENT = "comment"  # comments only
    CREATION = "creation"  # item first observed with no change history

    @classmethod
    def values(cls) -> list[str]:
        """Return list of all session kinds."""
        return [k.value for k in cls]


class FieldContext(str, Enum):
    """Interpretation of ``value`` nodes inside the current field block.

    Change-history documents reuse the same field grammar for bookkeeping
    (who/when) and for the item's creation pseudo-change; the context tag
    selected on field entry decides what a ``value`` node means.
    """

    NONE = "none"
    PLAIN = "plain"
    UPDATER = "updaterName"
    UPDATED = "updated"
    CREATED = "created"
    CREATOR = "updaterFullName"
    RESOLVED = "resolved"

    @classmethod
    def for_field(cls, field_name: str) -> "FieldContext":
        """Resolve the context tag for a ``field`` block's declared name."""
        for context in (cls.UPDATER, cls.UPDATED, cls.CREATED, cls.CREATOR, cls.RESOLVED):
            if field_name == context.value:
                return context
        return cls.PLAIN

    @classmethod
    def for_marker_element(cls, element_name: str) -> "FieldContext | None":
        """Resolve the context tag for a standalone marker element, if any."""
        if element_name == cls.CREATED.value:
            return cls.CREATED
        if element_name == cls.CREATOR.value:
            return cls.CREATOR
        return None


class ScanState(str, Enum):
    """Position of the change-history scanner in the document."""

    IDLE = "idle"
    IN_CHANGE = "in_change"
    IN_FIELD = "in_field"
