"""Share handoff CLI: stand in for a share sheet and inspect the shared record."""

import logging
from pathlib import Path

import click
from rich.markup import escape
from rich.table import Table

from share_handoff.activator import decline_opener
from share_handoff.console import console
from share_handoff.errors import SettingsError
from share_handoff.events import AssetPersisted
from share_handoff.events import AttachmentDropped
from share_handoff.events import AttachmentSkipped
from share_handoff.events import EventBus
from share_handoff.events import HandoffEvent
from share_handoff.extension import run_share
from share_handoff.host import HandoffInbox
from share_handoff.host import system_opener
from share_handoff.logging_setup import init_json_logging
from share_handoff.models import ShareRequest
from share_handoff.settings import HandoffSettings
from share_handoff.settings import load_settings

logger = logging.getLogger(__name__)

settings_option = click.option(
    "--settings",
    "settings_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Settings file (default: ~/.share-handoff/settings.yaml)",
)


def _load_settings_or_exit(settings_path: Path | None) -> HandoffSettings:
    try:
        return load_settings(settings_path)
    except SettingsError as e:
        console.print(f"[red]Invalid settings:[/red] {escape(str(e))}")
        raise SystemExit(1) from e


def _print_event(event: HandoffEvent, settings: HandoffSettings) -> None:
    if isinstance(event, AssetPersisted):
        path = Path(event.path)
        if path.is_relative_to(settings.container):
            path = path.relative_to(settings.container)
        console.print(f"[green]✓[/green] {escape(str(path))} [dim]({event.size} bytes)[/dim]")
    elif isinstance(event, AttachmentDropped):
        console.print(f"[yellow]⚠ Dropped attachment:[/yellow] {escape(event.reason)}")
    elif isinstance(event, AttachmentSkipped):
        console.print(f"[dim]Skipped unsupported attachment ({', '.join(event.type_identifiers)})[/dim]")


@click.group()
@click.version_option(package_name="share-handoff")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Level for the JSONL log (default: $SHARE_HANDOFF_LOG_LEVEL or INFO)",
)
@click.option("--log-file", type=click.Path(dir_okay=False), default=None, help="JSONL log file path")
def cli(log_level: str | None, log_file: str | None):
    """Share handoff - persist shared images and wake the host app."""
    init_json_logging(path=log_file, level=log_level)


@cli.command()
@click.argument("files", nargs=-1, type=click.Path(path_type=Path))
@click.option("--type", "type_identifier", default=None, help="Override the MIME type of every file")
@click.option("--no-activate", is_flag=True, help="Do not hand the activation address to the system")
@settings_option
def share(
    files: tuple[Path, ...],
    type_identifier: str | None,
    no_activate: bool,
    settings_path: Path | None,
):
    """Share FILES with the host application."""
    settings = _load_settings_or_exit(settings_path)
    request = ShareRequest.from_paths(files, type_identifier=type_identifier)
    logger.info(f"Sharing {len(files)} file(s) into group {settings.group_identifier}")

    bus = EventBus(settings)
    bus.subscribe(_print_event)
    opener = decline_opener if no_activate else system_opener

    with console.status(settings.preparing_message):
        result = run_share(request.items, settings, opener, event_bus=bus)

    if result.paths:
        table = Table(title="Shared Assets", show_header=True, header_style="bold cyan")
        table.add_column("#", style="dim", justify="right")
        table.add_column("Path", style="green")
        for index, path in enumerate(result.paths, 1):
            table.add_row(str(index), escape(path))
        console.print(table)
    else:
        console.print("[yellow]No attachments were shared[/yellow]")

    summary = f"{len(result.paths)} of {result.loads_issued} attachment(s) recorded"
    if result.loads_failed:
        summary += f", {result.loads_failed} dropped"
    console.print(summary)

    if result.activated:
        console.print(f"[green]✓ Host activated via {result.activation_url}[/green]")
    else:
        console.print(f"[dim]Host not activated ({result.activation_url})[/dim]")


@cli.command()
@settings_option
def record(settings_path: Path | None):
    """Show the current handoff record."""
    settings = _load_settings_or_exit(settings_path)
    paths = HandoffInbox(settings).pending_paths()

    if not paths:
        console.print(f"[yellow]Handoff record '{settings.record_key}' is empty[/yellow]")
        return

    table = Table(title=f"Handoff Record: {settings.record_key}", show_header=True, header_style="bold cyan")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Path", style="green")
    table.add_column("Exists", justify="center")
    table.add_column("Size", justify="right")
    for index, path in enumerate(paths, 1):
        exists = path.is_file()
        size = str(path.stat().st_size) if exists else "-"
        table.add_row(str(index), escape(str(path)), "✓" if exists else "[red]✗[/red]", size)
    console.print(table)


@cli.command()
@settings_option
def config(settings_path: Path | None):
    """Show effective handoff settings."""
    settings = _load_settings_or_exit(settings_path)

    table = Table(title="Handoff Settings", show_header=True, header_style="bold cyan")
    table.add_column("Setting", style="yellow")
    table.add_column("Value", style="white")
    for name, value in settings.model_dump().items():
        table.add_row(name, "" if value is None else escape(str(value)))
    table.add_row("container", str(settings.container))
    table.add_row("activation_url", settings.activation_url)
    console.print(table)


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
