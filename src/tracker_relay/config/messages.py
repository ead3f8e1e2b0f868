"""User-facing messages for tracker-relay.

This module consolidates the strings printed by the CLI:
- Project metadata and help text
- Success/error/info messages
"""

# =============================================================================
# Project Metadata
# =============================================================================

PROJECT_NAME = "tracker-relay"
PROJECT_TAGLINE = "Relay issue-tracker activity into chat-ready edit sessions"

HELP_TEXT = f"""
[bold cyan]relay[/bold cyan] - {PROJECT_TAGLINE}

[bold]Commands:[/bold]
  [cyan]events[/cyan]     List activity events decoded from a snapshot feed
  [cyan]sessions[/cyan]   List edit sessions decoded from a snapshot
  [cyan]poll[/cyan]       Run one polling cycle and advance the stored cutoff
  [cyan]reset[/cyan]      Forget the stored cutoff
  [cyan]version[/cyan]    Show version information

[bold]Examples:[/bold]
  [dim]$ relay events ./snapshot --since 2014-07-09T17:38:00[/dim]
  [dim]$ relay poll ./snapshot[/dim]
"""

# =============================================================================
# Messages
# =============================================================================

SUCCESS_MESSAGES = {
    "poll_complete": "Processed {count} event(s); cutoff is now {cutoff}",
    "reset": "Stored cutoff cleared",
}

ERROR_MESSAGES = {
    "invalid_since": "Invalid --since value '{value}': expected an ISO-8601 timestamp",
    "relay_failed": "Relay failed: {error}",
}

INFO_MESSAGES = {
    "no_events": "No activity events after {cutoff}",
    "no_sessions": "No edit sessions after {cutoff}",
    "no_cutoff": "no cutoff",
}
