"""Path constants for tracker-relay.

This module defines the directory structure and file names the relay uses
for its configuration, state and snapshot sources.
"""

# =============================================================================
# Core Directory Structure
# =============================================================================

CONFIG_FILE = ".relay/config.yaml"
STATE_FILE = ".relay/state.yaml"

# =============================================================================
# Snapshot Sources
# =============================================================================
# A snapshot directory mirrors what the tracker serves: the activity feed at
# the root and one change-history document per tracked item.

FEED_FILENAME = "feed.xml"
CHANGES_DIR = "changes"
CHANGES_FILE_EXTENSION = ".xml"
