"""Container and logging setup shared by the commands."""

from __future__ import annotations

import logging

from dependency_injector import providers

from linkpreview.cli.common.context import CliContext
from linkpreview.config.loader import load_settings
from linkpreview.containers import Container
from linkpreview.shared.logging import setup_structured_logger


def build_container(context: CliContext) -> Container:
    """Create a container for one command invocation and configure logging.

    Args:
        context: The parsed CLI context

    Returns:
        Container whose settings come from ``--config`` or the defaults

    Raises:
        ApplicationError: If the configuration cannot be loaded
    """
    container = Container()
    if context.config_path:
        container.config.override(providers.Singleton(load_settings, context.config_path))

    settings = container.config()
    setup_structured_logger(
        level=context.get_effective_log_level(settings.logging.level),
        log_file=settings.logging.file,
        use_rich_console=settings.logging.use_rich,
    )
    logging.getLogger(__name__).debug("Container ready (config=%s)", context.config_path or "<defaults>")
    return container
