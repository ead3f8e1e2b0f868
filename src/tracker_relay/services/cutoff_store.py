"""Persistence of the "last processed" cutoff between polling cycles."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol

import yaml

from tracker_relay.exceptions import ConfigurationError
from tracker_relay.utils.time_utils import ensure_utc

logger = logging.getLogger(__name__)

LAST_PROCESSED_KEY = "last_processed"


class CutoffStore(Protocol):
    """Remembers how far the relay has reported."""

    def load(self) -> datetime | None: ...

    def save(self, marker: datetime) -> None: ...

    def clear(self) -> None: ...


class YamlCutoffStore:
    """Cutoff marker kept in a YAML state file.

    Until a marker has been saved, :meth:`load` falls back to the deployment
    time so a fresh install does not replay the tracker's whole history.
    """

    def __init__(self, state_file: Path, deployment_time: datetime | None = None):
        self.state_file = Path(state_file)
        self.deployment_time = ensure_utc(deployment_time) if deployment_time else None

    def load(self) -> datetime | None:
        """Return the saved marker, else the deployment time, else ``None``."""
        value = self._read().get(LAST_PROCESSED_KEY)
        if value is None:
            return self.deployment_time
        if isinstance(value, datetime):
            return ensure_utc(value)
        try:
            return ensure_utc(datetime.fromisoformat(str(value)))
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid {LAST_PROCESSED_KEY} value '{value}'",
                config_file=self.state_file,
                key=LAST_PROCESSED_KEY,
            ) from e

    def save(self, marker: datetime) -> None:
        """Persist ``marker``; an older marker than the stored one is ignored."""
        marker = ensure_utc(marker)
        current = self.load()
        if current is not None and marker <= current:
            logger.debug(f"Cutoff {marker.isoformat()} not after {current.isoformat()}, kept")
            return
        data = self._read()
        data[LAST_PROCESSED_KEY] = marker.isoformat()
        self._write(data)
        logger.debug(f"Cutoff advanced to {marker.isoformat()}")

    def clear(self) -> None:
        data = self._read()
        if data.pop(LAST_PROCESSED_KEY, None) is not None:
            self._write(data)

    def _read(self) -> dict[str, Any]:
        if not self.state_file.exists():
            return {}
        try:
            with open(self.state_file, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML: {e}", config_file=self.state_file) from e
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, Any]) -> None:
        self.state_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.state_file, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
