"""
LinkPreview Typer CLI Application

This is the Typer-based CLI of LinkPreview. It exposes the preview
pipeline (``fetch``), the thumbnail heuristic (``thumbnail``) and the
persistent cache maintenance commands (``cache stats|prune|clear``).
"""

from __future__ import annotations

from typing import Annotated, Optional

import typer

from linkpreview.cli.cache_handler import (
    cache_clear_command,
    cache_prune_command,
    cache_stats_command,
)
from linkpreview.cli.common.context import CliContext, LogLevel, set_cli_context
from linkpreview.cli.common.options import (
    config_option,
    json_output_option,
    log_level_option,
    verbose_option,
    version_option,
)
from linkpreview.cli.fetch_handler import fetch_command
from linkpreview.cli.thumbnail_handler import thumbnail_command
from linkpreview.shared.constants import CLICommands, CLIDefaults, CLIHelp

# Create the main Typer app with callback
app = typer.Typer(
    name=CLIHelp.APP_NAME,
    help=CLIHelp.APP_DESCRIPTION,
    add_completion=False,
    rich_markup_mode=CLIHelp.APP_STYLE,
    no_args_is_help=True,
)

cache_app = typer.Typer(
    name=CLICommands.CACHE,
    help=CLIHelp.CACHE_HELP,
    no_args_is_help=True,
)
app.add_typer(cache_app, name=CLICommands.CACHE)


@app.callback()
def main(
    verbose: Annotated[int, verbose_option] = 0,
    log_level: Annotated[Optional[LogLevel], log_level_option] = None,
    json_output: Annotated[bool, json_output_option] = False,
    config: Annotated[Optional[str], config_option] = None,
    version: Annotated[bool, version_option] = False,  # noqa: ARG001
) -> None:
    """LinkPreview - cached, rate-bounded link metadata for hover previews."""
    context = CliContext(
        verbose=verbose,
        log_level=log_level,
        json_output=json_output,
        config_path=config,
    )
    set_cli_context(context)


@app.command(CLICommands.FETCH, help=CLIHelp.FETCH_HELP)
def fetch_command_typer(
    urls: Annotated[list[str], typer.Argument(help=CLIHelp.FETCH_URLS_HELP)],
) -> None:
    exit_code = fetch_command(urls)
    if exit_code != CLIDefaults.EXIT_SUCCESS:
        raise typer.Exit(exit_code)


@app.command(CLICommands.THUMBNAIL, help=CLIHelp.THUMBNAIL_HELP)
def thumbnail_command_typer(
    url: Annotated[str, typer.Argument(help="URL to inspect")],
) -> None:
    exit_code = thumbnail_command(url)
    if exit_code != CLIDefaults.EXIT_SUCCESS:
        raise typer.Exit(exit_code)


@cache_app.command(CLICommands.CACHE_STATS, help=CLIHelp.CACHE_STATS_HELP)
def cache_stats_command_typer() -> None:
    exit_code = cache_stats_command()
    if exit_code != CLIDefaults.EXIT_SUCCESS:
        raise typer.Exit(exit_code)


@cache_app.command(CLICommands.CACHE_PRUNE, help=CLIHelp.CACHE_PRUNE_HELP)
def cache_prune_command_typer() -> None:
    exit_code = cache_prune_command()
    if exit_code != CLIDefaults.EXIT_SUCCESS:
        raise typer.Exit(exit_code)


@cache_app.command(CLICommands.CACHE_CLEAR, help=CLIHelp.CACHE_CLEAR_HELP)
def cache_clear_command_typer() -> None:
    exit_code = cache_clear_command()
    if exit_code != CLIDefaults.EXIT_SUCCESS:
        raise typer.Exit(exit_code)


if __name__ == "__main__":
    app()
