"""Main CLI entry point for tracker-relay."""

from datetime import datetime
from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.markup import escape
from rich.table import Table

from tracker_relay import __version__
from tracker_relay.config.messages import (
    ERROR_MESSAGES,
    HELP_TEXT,
    INFO_MESSAGES,
    PROJECT_NAME,
    PROJECT_TAGLINE,
    SUCCESS_MESSAGES,
)
from tracker_relay.config.settings import RelaySettings, get_settings
from tracker_relay.exceptions import RelayError
from tracker_relay.models.config import RelayConfig
from tracker_relay.models.events import EditSession
from tracker_relay.services.cutoff_store import YamlCutoffStore
from tracker_relay.services.listener import EventListener
from tracker_relay.sources.channels import ChannelMapper
from tracker_relay.sources.extractor import EditSessionsExtractor
from tracker_relay.sources.streams import DirectoryStreamProvider
from tracker_relay.utils import (
    configure_logging,
    get_console,
    print_error,
    print_info,
    print_panel,
    print_success,
)
from tracker_relay.utils.time_utils import parse_iso_timestamp

# Load .env file from current directory if it exists
load_dotenv(Path.cwd() / ".env", verbose=False)

app = typer.Typer(
    name="relay",
    help=PROJECT_TAGLINE,
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

console = get_console()

SOURCE_ARGUMENT = typer.Argument(
    ...,
    exists=True,
    file_okay=False,
    dir_okay=True,
    help="Snapshot directory holding feed.xml and changes/<KEY>.xml",
)
SINCE_OPTION = typer.Option(
    None,
    "--since",
    "-s",
    help="Only report activity after this ISO-8601 timestamp (UTC if no offset)",
)


class ConsoleSink:
    """Delivery sink that prints one line per session instead of posting it."""

    def deliver(self, channel: str, session: EditSession) -> None:
        console.print(
            f"#{channel}  {session.key}  {session.updater}  {session.kind.value}",
            markup=False,
            highlight=False,
            soft_wrap=True,
        )


def _parse_since(value: str | None) -> datetime | None:
    if value is None:
        return None
    try:
        return parse_iso_timestamp(value)
    except ValueError:
        print_error(ERROR_MESSAGES["invalid_since"].format(value=value))
        raise typer.Exit(code=1) from None


def _describe_cutoff(cutoff: datetime | None) -> str:
    return cutoff.isoformat() if cutoff else INFO_MESSAGES["no_cutoff"]


def _extractor(source: Path, settings: RelaySettings) -> EditSessionsExtractor:
    return EditSessionsExtractor(DirectoryStreamProvider(source), settings.read_chunk_size)


def _fail(error: RelayError) -> typer.Exit:
    print_error(ERROR_MESSAGES["relay_failed"].format(error=error))
    return typer.Exit(code=1)


def _describe_session(session: EditSession) -> str:
    if session.is_creation:
        return f"created by {session.item.creator or session.updater}"
    lines = [str(change) for change in session.changes]
    lines.extend(f"{comment.author}: {comment.text}" for comment in session.comments)
    return "\n".join(lines)


@app.command("events")
def events(
    source: Path = SOURCE_ARGUMENT,
    since: str | None = SINCE_OPTION,
) -> None:
    """List activity events decoded from a snapshot's feed, oldest first."""
    cutoff = _parse_since(since)
    try:
        found = _extractor(source, get_settings()).latest_events(cutoff)
    except RelayError as e:
        raise _fail(e) from e

    if not found:
        print_info(INFO_MESSAGES["no_events"].format(cutoff=_describe_cutoff(cutoff)))
        return

    table = Table(title="Activity Events")
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Title")
    table.add_column("Link", style="dim")
    for event in found:
        table.add_row(event.key, escape(event.item.title_text), escape(event.item.link))
    console.print(table)


@app.command("sessions")
def sessions(
    source: Path = SOURCE_ARGUMENT,
    since: str | None = SINCE_OPTION,
) -> None:
    """List edit sessions decoded from a snapshot, grouped by event."""
    cutoff = _parse_since(since)
    try:
        found = _extractor(source, get_settings()).latest_edit_sessions(cutoff)
    except RelayError as e:
        raise _fail(e) from e

    if not found:
        print_info(INFO_MESSAGES["no_sessions"].format(cutoff=_describe_cutoff(cutoff)))
        return

    table = Table(title="Edit Sessions")
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Kind", style="green")
    table.add_column("Updater")
    table.add_column("Details")
    for session in found:
        table.add_row(
            session.key,
            session.kind.value,
            escape(session.updater),
            escape(_describe_session(session)),
        )
    console.print(table)


@app.command("poll")
def poll(source: Path = SOURCE_ARGUMENT) -> None:
    """Run one polling cycle against a snapshot.

    Sessions newer than the stored cutoff are printed with the channel they
    route to, and the cutoff advances past them.
    """
    settings = get_settings()
    try:
        config = RelayConfig.load(settings.config_file)
        store = YamlCutoffStore(settings.state_file, config.deployment_time)
        listener = EventListener(
            _extractor(source, settings),
            ConsoleSink(),
            ChannelMapper.from_config(config.channels),
            store,
        )
        count = listener.check_for_new_events()
        cutoff = store.load()
    except RelayError as e:
        raise _fail(e) from e

    print_success(
        SUCCESS_MESSAGES["poll_complete"].format(count=count, cutoff=_describe_cutoff(cutoff))
    )


@app.command("reset")
def reset() -> None:
    """Forget the stored cutoff; the next poll starts from the deployment time."""
    try:
        YamlCutoffStore(get_settings().state_file).clear()
    except RelayError as e:
        raise _fail(e) from e
    print_success(SUCCESS_MESSAGES["reset"])


@app.command("version")
def version() -> None:
    """Show version information."""
    print_panel(
        f"[bold cyan]{PROJECT_NAME}[/bold cyan] version [green]{__version__}[/green]\n\n"
        f"{PROJECT_TAGLINE}",
        title="Version",
        style="cyan",
    )


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version_flag: bool | None = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version information",
        is_eager=True,
    ),
) -> None:
    """tracker-relay - issue-tracker activity as chat-ready edit sessions."""
    settings = get_settings()
    configure_logging(
        settings.log_level,
        settings.log_file,
        rotate=settings.log_rotate,
        max_bytes=settings.log_max_bytes,
        backup_count=settings.log_backup_count,
    )

    if version_flag:
        version()
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(HELP_TEXT)
        raise typer.Exit()


if __name__ == "__main__":
    app()
