"""Handler of the ``thumbnail`` command."""

from __future__ import annotations

import typer
from rich.console import Console

from linkpreview.cli.common.context import get_cli_context
from linkpreview.cli.json_formatter import format_json_output
from linkpreview.services.thumbnails import extract_thumbnail, is_channel_page
from linkpreview.shared.constants import CLICommands, CLIDefaults


def thumbnail_command(url: str) -> int:
    """Show the direct thumbnail of a URL without any network call."""
    context = get_cli_context()
    thumbnail = extract_thumbnail(url)
    channel = is_channel_page(url)

    if context.is_json_output_enabled():
        output = format_json_output(
            success=True,
            command=CLICommands.THUMBNAIL,
            data={"url": url, "thumbnail": thumbnail, "is_channel_page": channel},
        )
        typer.echo(output.decode("utf-8"))
        return CLIDefaults.EXIT_SUCCESS

    console = Console()
    if thumbnail:
        console.print(f"[green]Thumbnail:[/green] {thumbnail}")
    else:
        console.print("[yellow]No direct thumbnail[/yellow]")
    if channel:
        console.print("Channel page: the remote image will be suppressed")
    return CLIDefaults.EXIT_SUCCESS
