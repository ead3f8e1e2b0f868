"""Pytest configuration and fixtures for tracker-relay tests."""

import io
import logging
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from xml.sax.saxutils import quoteattr

import pytest

from tracker_relay.config.paths import CHANGES_DIR, CHANGES_FILE_EXTENSION, FEED_FILENAME
from tracker_relay.models.events import TrackedItem
from tracker_relay.utils.time_utils import from_epoch_millis

# 2014-07-09 17:38:36.756 UTC and a few seconds later
T0_MILLIS = 1404927516756
T1_MILLIS = 1404927529000
T2_MILLIS = 1404927600000

T0 = from_epoch_millis(T0_MILLIS)
T1 = from_epoch_millis(T1_MILLIS)
T2 = from_epoch_millis(T2_MILLIS)


# ---------------------------------------------------------------------------
# XML builders
# ---------------------------------------------------------------------------


def feed_item(title: str, pub_date: str, link: str = "", description: str = "") -> str:
    """One RSS ``item`` with the fixed title/link/description/pubDate layout."""
    link = link or f"https://tracker.example.com/issue/{title.split(':')[0]}"
    return (
        "<item>"
        f"<title>{title}</title>"
        f"<link>{link}</link>"
        f"<description>{description}</description>"
        f"<pubDate>{pub_date}</pubDate>"
        "</item>"
    )


def feed_document(*items: str) -> bytes:
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<rss version="2.0"><channel><title>Activity</title>'
        + "".join(items)
        + "</channel></rss>"
    ).encode()


def value_field(name: str, value: str | int) -> str:
    """Bookkeeping field carrying a single ``value`` node."""
    return f'<field name="{name}"><value>{value}</value></field>'


def change_field(name: str, new: str, old: str = "") -> str:
    """Real field change with ``oldValue``/``newValue`` children."""
    old_node = f"<oldValue>{old}</oldValue>" if old else ""
    return f'<field name="{name}">{old_node}<newValue>{new}</newValue></field>'


def comment(author: str, text: str, created: str | int) -> str:
    return (
        f"<comment authorFullName={quoteattr(author)} text={quoteattr(text)} "
        f'created="{created}"/>'
    )


def change_block(updater: str, updated: str | int, *parts: str) -> str:
    return (
        "<change>"
        + value_field("updaterName", updater)
        + value_field("updated", updated)
        + "".join(parts)
        + "</change>"
    )


def issue_header(
    updater: str = "rob",
    updated: int = T0_MILLIS,
    created: int | None = T0_MILLIS,
    creator: str | None = "Rob Smith",
) -> str:
    """Item header: the creation pseudo-change."""
    parts = [value_field("updaterName", updater), value_field("updated", updated)]
    if created is not None:
        parts.append(value_field("created", created))
    if creator is not None:
        parts.append(value_field("updaterFullName", creator))
    return "<issue>" + "".join(parts) + "</issue>"


def changes_document(*parts: str) -> bytes:
    return ('<?xml version="1.0" encoding="UTF-8"?><changes>' + "".join(parts) + "</changes>").encode()


def as_stream(data: bytes) -> io.BytesIO:
    return io.BytesIO(data)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@dataclass
class Snapshot:
    """Snapshot directory writer: feed at the root, histories under changes/."""

    root: Path

    def write_feed(self, data: bytes) -> Path:
        path = self.root / FEED_FILENAME
        path.write_bytes(data)
        return path

    def write_changes(self, key: str, data: bytes) -> Path:
        path = self.root / CHANGES_DIR / f"{key}{CHANGES_FILE_EXTENSION}"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return path


@pytest.fixture
def snapshot(tmp_path: Path) -> Snapshot:
    """Empty snapshot directory.

    Returns:
        Snapshot writer rooted in a temporary directory
    """
    root = tmp_path / "snapshot"
    root.mkdir()
    return Snapshot(root)


@pytest.fixture
def item() -> TrackedItem:
    return TrackedItem(
        namespace_prefix="ABC",
        numeric_id=12,
        title="ABC-12: Fix bug",
        description="Crash on save",
        link="https://tracker.example.com/issue/ABC-12",
    )


@pytest.fixture(autouse=True)
def reset_relay_logger() -> Iterator[None]:
    """Undo CLI logging setup so caplog sees relay records in every test."""
    yield
    relay_logger = logging.getLogger("tracker_relay")
    for handler in relay_logger.handlers:
        handler.close()
    relay_logger.handlers.clear()
    relay_logger.propagate = True
    relay_logger.setLevel(logging.NOTSET)


@pytest.fixture
def relay_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point settings at a temporary workspace.

    Returns:
        Workspace directory holding config and state files
    """
    workspace = tmp_path / "workspace"
    workspace.mkdir()
    monkeypatch.chdir(workspace)
    for name in ("CONFIG_FILE", "STATE_FILE", "LOG_LEVEL", "LOG_FILE", "READ_CHUNK_SIZE"):
        monkeypatch.delenv(f"TRACKER_RELAY_{name}", raising=False)
    monkeypatch.setenv("TRACKER_RELAY_CONFIG_FILE", str(workspace / ".relay" / "config.yaml"))
    monkeypatch.setenv("TRACKER_RELAY_STATE_FILE", str(workspace / ".relay" / "state.yaml"))
    monkeypatch.setenv("TRACKER_RELAY_LOG_LEVEL", "WARNING")
    return workspace


def utc_datetime(*args: int) -> datetime:
    return datetime(*args, tzinfo=UTC)
