"""Console output helpers built on rich."""

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

console = Console()


def get_console() -> Console:
    return console


def print_error(message: str) -> None:
    console.print(f"[bold red]✗[/bold red] {escape(message)}")


def print_success(message: str) -> None:
    console.print(f"[bold green]✓[/bold green] {escape(message)}")


def print_info(message: str) -> None:
    console.print(f"[cyan]ℹ[/cyan] {escape(message)}")


def print_panel(content: str, title: str | None = None, style: str = "cyan") -> None:
    """Print ``content`` (rich markup allowed) inside a bordered panel."""
    console.print(Panel(content, title=title, border_style=style))
