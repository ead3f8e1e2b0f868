"""Runtime configuration settings for tracker-relay.

This module uses Pydantic Settings for configuration that can be
overridden via environment variables. This provides:
- Type validation
- Environment variable support (TRACKER_RELAY_ prefix)
- Default values
- Easy testing via dependency injection
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from tracker_relay.config.paths import CONFIG_FILE, STATE_FILE


class RelaySettings(BaseSettings):
    """Relay runtime settings.

    Can be overridden via environment variables with TRACKER_RELAY_ prefix.
    """

    model_config = SettingsConfigDict(env_prefix="TRACKER_RELAY_")

    config_file: Path = Field(
        default=Path(CONFIG_FILE),
        description="YAML configuration file (channel routing, deployment time)",
    )
    state_file: Path = Field(
        default=Path(STATE_FILE),
        description="YAML state file holding the last processed cutoff",
    )
    log_level: str = Field(default="INFO", description="Log level for the relay logger")
    log_file: Path | None = Field(
        default=None,
        description="Optional log file; logs go to stderr when unset",
    )
    log_rotate: bool = Field(default=True, description="Rotate the log file")
    log_max_bytes: int = Field(default=5 * 1024 * 1024, description="Rotation threshold")
    log_backup_count: int = Field(default=3, description="Rotated log files to keep")
    read_chunk_size: int = Field(
        default=64 * 1024,
        gt=0,
        description="Bytes read from a stream per parser feed",
    )


def get_settings() -> RelaySettings:
    """Build settings from the current environment."""
    return RelaySettings()
