"""Services around the decoding core: cutoff persistence and polling cycles."""

from tracker_relay.services.cutoff_store import CutoffStore, YamlCutoffStore
from tracker_relay.services.listener import EventListener, SessionSink

__all__ = ["CutoffStore", "EventListener", "SessionSink", "YamlCutoffStore"]
