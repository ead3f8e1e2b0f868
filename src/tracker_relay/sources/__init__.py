"""Sources: decoding tracker activity into domain records."""

from tracker_relay.sources.change_decoder import ChangeHistoryDecoder, decode_changes
from tracker_relay.sources.channels import ChannelMapper
from tracker_relay.sources.extractor import EditSessionsExtractor
from tracker_relay.sources.feed_decoder import FeedDecoder, decode_feed
from tracker_relay.sources.streams import DirectoryStreamProvider, StreamProvider

__all__ = [
    "ChangeHistoryDecoder",
    "ChannelMapper",
    "DirectoryStreamProvider",
    "EditSessionsExtractor",
    "FeedDecoder",
    "StreamProvider",
    "decode_changes",
    "decode_feed",
]
