"""Timestamp helpers shared by the decoders and the domain model."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

KEY_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
RESOLVED_TIMESTAMP_FORMAT = "%a %b %d %H:%M:%S UTC %Y"


def from_epoch_millis(millis: int) -> datetime:
    """Convert epoch milliseconds to an aware UTC datetime (millisecond precision)."""
    return _EPOCH + timedelta(milliseconds=millis)


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def is_after(timestamp: datetime, cutoff: datetime | None) -> bool:
    """Strict cutoff test: ``None`` lets everything through."""
    return cutoff is None or ensure_utc(timestamp) > ensure_utc(cutoff)


def format_key_timestamp(value: datetime) -> str:
    """Second-precision UTC rendering used in event keys."""
    return ensure_utc(value).strftime(KEY_TIMESTAMP_FORMAT)


def format_resolved_timestamp(value: datetime) -> str:
    """Human-readable rendering of a resolution timestamp."""
    return ensure_utc(value).strftime(RESOLVED_TIMESTAMP_FORMAT)


def parse_iso_timestamp(text: str) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC.

    Raises:
        ValueError: If the text is not ISO-8601.
    """
    return ensure_utc(datetime.fromisoformat(text.strip()))
