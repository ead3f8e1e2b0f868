"""Configuration models for tracker-relay."""

from datetime import datetime
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from tracker_relay.exceptions import ConfigurationError
from tracker_relay.utils.time_utils import ensure_utc

DEFAULT_CHANNEL = "process"


class ChannelsConfig(BaseModel):
    """Chat channel routing by item namespace prefix."""

    default: str = Field(default=DEFAULT_CHANNEL, description="Channel for unmapped prefixes")
    mappings: dict[str, str] = Field(
        default_factory=dict,
        description="Namespace prefix -> channel name",
    )

    @field_validator("default")
    @classmethod
    def _default_not_blank(cls, value: str) -> str:
        value = value.strip().lstrip("#")
        if not value:
            raise ValueError("default channel must not be blank")
        return value


class RelayConfig(BaseModel):
    """Main tracker-relay configuration."""

    version: str = Field(default="0.1.0", description="Config version")
    channels: ChannelsConfig = Field(
        default_factory=ChannelsConfig, description="Channel routing configuration"
    )
    # Activity older than this is never reported, even on the very first run
    deployment_time: datetime | None = Field(
        default=None,
        description="Initial cutoff used until a cycle has been processed",
    )

    @field_validator("deployment_time")
    @classmethod
    def _deployment_time_utc(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value) if value is not None else None

    @classmethod
    def load(cls, config_path: Path) -> "RelayConfig":
        """Load configuration from file.

        Returns defaults when the file does not exist or is empty.

        Raises:
            ConfigurationError: If the file is not valid YAML or fails validation.
        """
        if not config_path.exists():
            return cls()

        try:
            with open(config_path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML: {e}", config_file=config_path) from e

        if not data:
            return cls()

        # Older configs kept channel mappings as a flat "PREFIX->channel;..." string
        channels = data.get("channels")
        if isinstance(channels, dict) and isinstance(channels.get("mappings"), str):
            from tracker_relay.sources.channels import ChannelMapper

            channels["mappings"] = ChannelMapper.parse_mappings(channels["mappings"])

        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid configuration: {e}", config_file=config_path
            ) from e

    def save(self, config_path: Path) -> None:
        """Save configuration to file."""
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(
                self.model_dump(mode="json", exclude_none=True),
                f,
                default_flow_style=False,
                sort_keys=False,
            )
