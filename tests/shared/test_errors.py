"""Tests for the LinkPreview error hierarchy."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

import pytest

from linkpreview.shared.errors import (
    ApplicationError,
    CliError,
    ErrorCode,
    ErrorContext,
    InfrastructureError,
    LinkPreviewError,
    MalformedResponseError,
    PreviewNetworkError,
    PreviewTimeoutError,
    StorageError,
    StorageQuotaError,
    create_cli_error,
    create_malformed_response_error,
    create_network_error,
    create_timeout_error,
)


class _Color(Enum):
    RED = "red"


class TestErrorContext:
    """Test cases for the ErrorContext frozen dataclass."""

    def test_empty_context(self) -> None:
        """Test creating an empty ErrorContext."""
        context = ErrorContext()

        assert context.url is None
        assert context.operation is None
        assert context.additional_data is None

    def test_additional_data_is_coerced(self) -> None:
        """Test Path and Enum values become primitives and None is dropped."""
        context = ErrorContext(
            additional_data={"path": Path("a/b"), "color": _Color.RED, "missing": None, "n": 3},
        )

        assert context.additional_data == {"path": str(Path("a/b")), "color": "red", "n": 3}

    def test_rejects_non_primitive(self) -> None:
        """Test unconvertible values are refused."""
        with pytest.raises(TypeError):
            ErrorContext(additional_data={"bad": object()})

    def test_frozen(self) -> None:
        """Test the context is immutable."""
        context = ErrorContext(url="https://example.com")

        with pytest.raises(AttributeError):
            context.url = "https://other.example"  # type: ignore[misc]

    def test_safe_dict_skips_unset_fields(self) -> None:
        """Test safe_dict leaves out unset fields and always has additional_data."""
        context = ErrorContext(url="https://example.com", operation="fetch")

        assert context.safe_dict() == {
            "url": "https://example.com",
            "operation": "fetch",
            "additional_data": {},
        }
        assert ErrorContext().safe_dict() == {"additional_data": {}}


class TestErrorHierarchy:
    """Test the exception classes."""

    def test_str_and_to_dict(self) -> None:
        """Test the string form and the logging dictionary."""
        original = ValueError("root cause")
        error = LinkPreviewError(
            ErrorCode.CACHE_CORRUPTED,
            "Entry unreadable",
            ErrorContext(operation="cache_get"),
            original,
        )

        assert str(error) == "CACHE_CORRUPTED: Entry unreadable"
        assert error.to_dict() == {
            "code": "CACHE_CORRUPTED",
            "message": "Entry unreadable",
            "context": {"operation": "cache_get", "additional_data": {}},
            "original_error": "root cause",
        }

    def test_subclass_relationships(self) -> None:
        """Test where each error sits in the hierarchy."""
        assert issubclass(PreviewTimeoutError, PreviewNetworkError)
        assert issubclass(PreviewNetworkError, InfrastructureError)
        assert issubclass(MalformedResponseError, InfrastructureError)
        assert issubclass(StorageQuotaError, StorageError)
        assert issubclass(CliError, ApplicationError)
        assert issubclass(ApplicationError, LinkPreviewError)


class TestErrorFactories:
    """Test the convenience constructors."""

    @pytest.mark.parametrize(
        ("status", "code"),
        [
            (None, ErrorCode.NETWORK_ERROR),
            (429, ErrorCode.API_RATE_LIMIT),
            (502, ErrorCode.API_SERVER_ERROR),
            (403, ErrorCode.API_REQUEST_FAILED),
        ],
    )
    def test_network_error_codes(self, status: int | None, code: ErrorCode) -> None:
        """Test the code is derived from the HTTP status."""
        error = create_network_error("https://example.com", "failed", status_code=status)

        assert error.code == code
        assert error.status_code == status
        assert error.context.url == "https://example.com"

    def test_timeout_error(self) -> None:
        """Test the timeout error carries its limit."""
        error = create_timeout_error("https://example.com", 5.0)

        assert isinstance(error, PreviewTimeoutError)
        assert error.code == ErrorCode.API_TIMEOUT
        assert error.context.additional_data == {"timeout": 5.0}
        assert "5.0s" in error.message

    def test_malformed_response_error(self) -> None:
        """Test the malformed response error."""
        error = create_malformed_response_error("https://example.com", "not JSON")

        assert error.code == ErrorCode.API_INVALID_RESPONSE
        assert error.context.operation == "parse_metadata"

    def test_cli_error(self) -> None:
        """Test the CLI error keeps its command and exit code."""
        error = create_cli_error("boom", command="fetch", exit_code=2)

        assert error.command == "fetch"
        assert error.exit_code == 2
        assert error.code == ErrorCode.CLI_UNEXPECTED_ERROR
