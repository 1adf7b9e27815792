"""Rich console output for the rtcsignal CLI."""

from pathlib import Path

from rich.console import Console

console = Console()


def print_error(message: str) -> None:
    console.print(f"[bold red]Error:[/bold red] {message}")


def print_info(message: str) -> None:
    console.print(f"[dim]{message}[/dim]")


def print_success(message: str) -> None:
    console.print(f"[green]{message}[/green]")


def print_server_banner(url: str, auth_required: bool, log_file: Path | None) -> None:
    """Print the startup summary once the listener is bound.

    Args:
        url: Base URL of the signaling routes (host, port and prefix).
        auth_required: Whether connection creation needs a bearer token.
        log_file: Rotating server log, if file logging is on.
    """
    console.print("[bold]rtcsignal signaling server[/bold]")
    console.print(f"Listening: [cyan]{url}[/cyan]")
    if auth_required:
        console.print("Authorization: Bearer token required")
    else:
        console.print("[yellow]Authorization: disabled (no API key)[/yellow]")
    if log_file is not None:
        print_info(f"Server log: {log_file}")
    print_info("Press Ctrl+C to stop")
