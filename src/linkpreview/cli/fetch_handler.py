"""Handler of the ``fetch`` command."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from linkpreview.cli.common.context import get_cli_context
from linkpreview.cli.common.error_handler import handle_cli_error
from linkpreview.cli.common.setup import build_container
from linkpreview.cli.json_formatter import format_json_output
from linkpreview.containers import Container
from linkpreview.shared.constants import CLICommands, CLIDefaults
from linkpreview.shared.types.outcome import Failed, FetchOutcome, Ok

logger = logging.getLogger(__name__)


def _outcome_to_dict(url: str, outcome: FetchOutcome) -> dict[str, Any]:
    result: dict[str, Any] = {"url": url, "ok": outcome.ok}
    if isinstance(outcome, Ok):
        result["source"] = outcome.source.value
        result["metadata"] = outcome.metadata.model_dump()
    elif isinstance(outcome, Failed):
        result["error_code"] = outcome.code.value
        result["reason"] = outcome.reason
        result["attempts"] = outcome.attempts
    return result


async def _fetch_all(container: Container, urls: list[str]) -> list[FetchOutcome]:
    service = container.preview_service()
    container.cache().check_size()
    try:
        return list(await asyncio.gather(*(service.resolve(url) for url in urls)))
    finally:
        await service.close()
        await container.fetcher().close()


def _render_table(console: Console, results: list[dict[str, Any]]) -> None:
    table = Table(title="Link previews", show_lines=False)
    table.add_column("URL", overflow="fold")
    table.add_column("Source")
    table.add_column("Title", overflow="fold")
    table.add_column("Image", overflow="fold")

    for result in results:
        if result["ok"]:
            metadata = result["metadata"]
            table.add_row(
                escape(result["url"]),
                f"[green]{result['source']}[/green]",
                escape(metadata["title"]),
                escape(metadata["image"]) or "-",
            )
        else:
            table.add_row(
                escape(result["url"]),
                "[red]failed[/red]",
                escape(result["reason"]),
                "-",
            )
    console.print(table)


def fetch_command(urls: list[str]) -> int:
    """Fetch previews for URLs through the cache and the request queue.

    Args:
        urls: URLs to resolve

    Returns:
        Exit code, non-zero when any URL failed
    """
    context = get_cli_context()
    json_output = context.is_json_output_enabled()

    try:
        container = build_container(context)
        outcomes = asyncio.run(_fetch_all(container, urls))
        results = [_outcome_to_dict(url, outcome) for url, outcome in zip(urls, outcomes)]
        metrics = container.metrics().snapshot()
    except Exception as e:  # noqa: BLE001
        return handle_cli_error(e, CLICommands.FETCH, json_output=json_output)

    failed = [result for result in results if not result["ok"]]

    if json_output:
        output = format_json_output(
            success=not failed,
            command=CLICommands.FETCH,
            data={"results": results, "metrics": metrics},
            warnings=[f"{result['url']}: {result['reason']}" for result in failed],
        )
        typer.echo(output.decode("utf-8"))
    else:
        console = Console()
        _render_table(console, results)
        console.print(
            f"Hit rate {metrics['hit_rate_display']} | "
            f"avg load {metrics['avg_load_time_ms']}ms | errors {metrics['errors']}",
        )

    logger.debug("Fetched %d URL(s), %d failed", len(urls), len(failed))
    return CLIDefaults.EXIT_ERROR if failed else CLIDefaults.EXIT_SUCCESS
