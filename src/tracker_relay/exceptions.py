"""Custom exceptions for tracker-relay.

This module defines a hierarchy of exceptions for consistent error handling
across the relay. All exceptions inherit from RelayError, allowing callers
to catch all relay errors with a single except clause if desired.

Exception hierarchy:
    RelayError (base)
    ├── ConfigurationError
    └── DecodeError
        ├── FeedDecodeError
        ├── ChangeHistoryDecodeError
        ├── TitleParseError
        └── StreamError
"""

from pathlib import Path
from typing import Any


class RelayError(Exception):
    """Base exception for all tracker-relay errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        """Initialize relay error.

        Args:
            message: Error description.
            details: Optional dictionary with additional context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation."""
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(RelayError):
    """Raised when configuration is invalid or cannot be loaded.

    Examples:
        - Invalid YAML syntax in config or state file
        - Malformed channel mapping entry
    """

    def __init__(
        self,
        message: str,
        config_file: Path | None = None,
        key: str | None = None,
    ):
        details = {}
        if config_file:
            details["config_file"] = str(config_file)
        if key:
            details["key"] = key
        super().__init__(message, details)
        self.config_file = config_file
        self.key = key


# =============================================================================
# Decode Errors
# =============================================================================


class DecodeError(RelayError):
    """Raised when a feed or change-history document cannot be decoded.

    A decode error fails the whole decode call; no partially built record
    is ever returned alongside it.
    """

    def __init__(self, message: str, source: str | None = None, **context: Any):
        """Initialize decode error.

        Args:
            message: Error description.
            source: What was being decoded (``"feed"`` or an item key).
            **context: Extra context (element name, offending value, ...).
        """
        details: dict[str, Any] = {}
        if source:
            details["source"] = source
        details.update({k: v for k, v in context.items() if v is not None})
        super().__init__(message, details)
        self.source = source


class FeedDecodeError(DecodeError):
    """Raised when the activity feed deviates from its fixed item layout."""


class ChangeHistoryDecodeError(DecodeError):
    """Raised when an item's change history is malformed.

    Examples:
        - Non-numeric epoch timestamp in a field or comment
        - Comment missing author, text or created attribute
        - Field block without a name
    """


class TitleParseError(DecodeError):
    """Raised when a feed item title lacks the ``PREFIX-NUMBER:`` pattern.

    The feed decoder handles this per item: the item is skipped and the
    rest of the feed is still decoded.
    """

    def __init__(self, message: str, title: str):
        super().__init__(message, source="feed", title=title)
        self.title = title


class StreamError(DecodeError):
    """Raised when a source stream cannot be opened or read."""
