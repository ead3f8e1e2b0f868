"""Channel routing: which chat channel hears about which item."""

from __future__ import annotations

from collections.abc import Mapping

from tracker_relay.exceptions import ConfigurationError
from tracker_relay.models.config import ChannelsConfig
from tracker_relay.models.events import TrackedItem

MAPPING_SEPARATOR = ";"
MAPPING_ARROW = "->"


class ChannelMapper:
    """Maps an item's namespace prefix to a channel name.

    Prefixes without a mapping go to the default channel.
    """

    def __init__(self, default_channel: str, mappings: Mapping[str, str] | None = None):
        self.default_channel = default_channel
        self.mappings = dict(mappings or {})

    @classmethod
    def from_config(cls, config: ChannelsConfig) -> ChannelMapper:
        return cls(config.default, config.mappings)

    @staticmethod
    def parse_mappings(text: str) -> dict[str, str]:
        """Parse ``"ABC->xyz;XYZ->abc"`` into ``{"ABC": "xyz", "XYZ": "abc"}``.

        Raises:
            ConfigurationError: If an entry is not ``PREFIX->channel``.
        """
        mappings: dict[str, str] = {}
        for entry in text.split(MAPPING_SEPARATOR):
            entry = entry.strip()
            if not entry:
                continue
            prefix, arrow, channel = entry.partition(MAPPING_ARROW)
            prefix, channel = prefix.strip(), channel.strip()
            if not arrow or not prefix or not channel:
                raise ConfigurationError(
                    f"Invalid channel mapping '{entry}', expected PREFIX{MAPPING_ARROW}channel",
                    key="channels.mappings",
                )
            mappings[prefix] = channel
        return mappings

    def get_channel(self, item: TrackedItem) -> str:
        return self.mappings.get(item.namespace_prefix, self.default_channel)
