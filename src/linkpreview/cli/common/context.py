"""
CLI Context Management Module

This module manages global CLI state using a Pydantic model and a
ContextVar, so every command reads the options parsed by the main callback.

The context includes:
- verbose: Verbosity level (int, count-based)
- log_level: Logging level override (enum-based, optional)
- json_output: JSON output mode (bool)
- config_path: Optional TOML configuration file
"""

from __future__ import annotations

import contextvars
from enum import Enum

from pydantic import BaseModel, Field


class LogLevel(str, Enum):
    """Log level enumeration for type safety."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class CliContext(BaseModel):
    """
    CLI context model for managing global state.

    Attributes:
        verbose: Verbosity level (0 = normal, 1+ = verbose)
        log_level: Logging level override, None to use the configured level
        json_output: Whether to output in JSON format
        config_path: Optional TOML configuration file
    """

    verbose: int = Field(
        default=0,
        ge=0,
        description="Verbosity level (0 = normal, 1+ = verbose)",
    )

    log_level: LogLevel | None = Field(
        default=None,
        description="Logging level override",
    )

    json_output: bool = Field(
        default=False,
        description="Whether to output in JSON format",
    )

    config_path: str | None = Field(
        default=None,
        description="TOML configuration file",
    )

    def is_verbose(self) -> bool:
        """Check if verbose mode is enabled."""
        return self.verbose > 0

    def get_effective_log_level(self, configured: str) -> str:
        """
        Get the effective log level.

        Verbose forces DEBUG; an explicit ``--log-level`` beats the
        configured level.

        Args:
            configured: Level from the settings

        Returns:
            str: Effective log level
        """
        if self.is_verbose():
            return LogLevel.DEBUG.value
        if self.log_level is not None:
            return self.log_level.value
        return configured

    def is_json_output_enabled(self) -> bool:
        """Check if JSON output is enabled."""
        return self.json_output


cli_context_var: contextvars.ContextVar[CliContext | None] = contextvars.ContextVar(
    "cli_context",
    default=None,
)


def get_cli_context() -> CliContext:
    """
    Get the current CLI context.

    Returns:
        CliContext: The context set by the main callback, or defaults
    """
    context = cli_context_var.get()
    if context is None:
        return CliContext()
    return context


def set_cli_context(context: CliContext) -> None:
    """Set the CLI context for the current execution."""
    cli_context_var.set(context)


def clear_cli_context() -> None:
    """Clear the CLI context."""
    cli_context_var.set(None)
