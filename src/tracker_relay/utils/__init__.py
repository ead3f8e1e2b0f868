"""Utility helpers for tracker-relay."""

from tracker_relay.utils.console import (
    get_console,
    print_error,
    print_info,
    print_panel,
    print_success,
)
from tracker_relay.utils.logging_setup import configure_logging

__all__ = [
    "configure_logging",
    "get_console",
    "print_error",
    "print_info",
    "print_panel",
    "print_success",
]
