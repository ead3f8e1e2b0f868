"""Data models for tracker-relay"""

from .config import ChannelsConfig, RelayConfig
from .enums import FieldContext, ScanState, SessionKind
from .events import ActivityEvent, Comment, EditSession, FieldChange, TrackedItem

__all__ = [
    "ActivityEvent",
    "ChannelsConfig",
    "Comment",
    "EditSession",
    "FieldChange",
    "FieldContext",
    "RelayConfig",
    "ScanState",
    "SessionKind",
    "TrackedItem",
]
