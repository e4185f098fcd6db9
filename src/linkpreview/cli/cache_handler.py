"""Handlers of the ``cache`` sub-commands."""

from __future__ import annotations

from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from linkpreview.cli.common.context import get_cli_context
from linkpreview.cli.common.error_handler import handle_cli_error
from linkpreview.cli.common.setup import build_container
from linkpreview.cli.json_formatter import format_json_output
from linkpreview.shared.constants import CLICommands, CLIDefaults


def _command_name(sub_command: str) -> str:
    return f"{CLICommands.CACHE} {sub_command}"


def _emit(command: str, data: dict[str, Any], title: str) -> None:
    if get_cli_context().is_json_output_enabled():
        typer.echo(format_json_output(success=True, command=command, data=data).decode("utf-8"))
        return

    table = Table(title=title, show_header=False)
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key, value in data.items():
        table.add_row(key.replace("_", " "), str(value))
    Console().print(table)


def cache_stats_command() -> int:
    """Show the persisted cache footprint and the pipeline limits."""
    command = _command_name(CLICommands.CACHE_STATS)
    context = get_cli_context()
    try:
        container = build_container(context)
        cache = container.cache()
        settings = container.config()
        stats = cache.stats()
        stats["persisted_kib"] = round(stats["persisted_bytes"] / 1024, 1)
        stats["max_concurrent"] = settings.api.max_concurrent
        stats["max_retries"] = settings.api.max_retries
        stats["timeout_seconds"] = settings.api.timeout
    except Exception as e:  # noqa: BLE001
        return handle_cli_error(e, command, json_output=context.is_json_output_enabled())

    _emit(command, stats, "Preview cache")
    return CLIDefaults.EXIT_SUCCESS


def cache_prune_command() -> int:
    """Evict expired and surplus entries, then enforce the byte budget."""
    command = _command_name(CLICommands.CACHE_PRUNE)
    context = get_cli_context()
    try:
        cache = build_container(context).cache()
        removed = cache.evict()
        total_bytes = cache.check_size()
    except Exception as e:  # noqa: BLE001
        return handle_cli_error(e, command, json_output=context.is_json_output_enabled())

    _emit(
        command,
        {"removed": removed, "persisted_bytes": total_bytes, "remaining": len(cache.persisted_keys)},
        "Cache pruned",
    )
    return CLIDefaults.EXIT_SUCCESS


def cache_clear_command() -> int:
    """Remove every persisted preview entry."""
    command = _command_name(CLICommands.CACHE_CLEAR)
    context = get_cli_context()
    try:
        removed = build_container(context).cache().clear()
    except Exception as e:  # noqa: BLE001
        return handle_cli_error(e, command, json_output=context.is_json_output_enabled())

    _emit(command, {"removed": removed}, "Cache cleared")
    return CLIDefaults.EXIT_SUCCESS
