"""Tests for CLI context management."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from linkpreview.cli.common.context import (
    CliContext,
    LogLevel,
    clear_cli_context,
    get_cli_context,
    set_cli_context,
)


class TestCliContext:
    """Test the context model."""

    def test_defaults(self) -> None:
        """Test a default context."""
        context = CliContext()

        assert context.verbose == 0
        assert context.log_level is None
        assert context.json_output is False
        assert context.config_path is None

    def test_validation(self) -> None:
        """Test invalid values are refused."""
        with pytest.raises(ValidationError):
            CliContext(verbose=-1)
        with pytest.raises(ValidationError):
            CliContext(log_level="LOUD")

    @pytest.mark.parametrize(
        ("verbose", "log_level", "expected"),
        [
            (0, None, "WARNING"),
            (0, LogLevel.ERROR, "ERROR"),
            (1, LogLevel.ERROR, "DEBUG"),
        ],
    )
    def test_effective_log_level(self, verbose: int, log_level: LogLevel | None, expected: str) -> None:
        """Test verbose beats --log-level, which beats the configured level."""
        context = CliContext(verbose=verbose, log_level=log_level)

        assert context.get_effective_log_level("WARNING") == expected


class TestContextVar:
    """Test context storage."""

    def test_set_get_clear(self) -> None:
        """Test the stored context is returned until cleared."""
        context = CliContext(json_output=True)
        set_cli_context(context)

        assert get_cli_context() is context

        clear_cli_context()

        assert get_cli_context().json_output is False
