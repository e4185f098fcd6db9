"""LinkPreview Error Handling Module

This module defines the error handling system for LinkPreview, providing
structured error classes with context information.

The error hierarchy follows these principles:
- One Source of Truth: All error codes are defined in ErrorCode enum
- Structured Context: ErrorContext provides additional information
- Proper Exception Chaining: Original exceptions are preserved

Errors raised inside the acquisition pipeline never reach the consumer.
They are caught at the queue/cache boundary, logged and converted into a
``Failed`` outcome (see ``linkpreview.shared.types.outcome``).
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Union

# Type alias for primitive context values (str, int, float, bool only)
PrimitiveContextValue = Union[str, int, float, bool]



class ErrorCode(str, Enum):
    """Error codes for LinkPreview.

    This enum serves as the single source of truth for all error codes
    used throughout the package.
    """

    # Network and API Errors
    NETWORK_ERROR = "NETWORK_ERROR"
    API_REQUEST_FAILED = "API_REQUEST_FAILED"
    API_TIMEOUT = "API_TIMEOUT"
    API_SERVER_ERROR = "API_SERVER_ERROR"
    API_RATE_LIMIT = "API_RATE_LIMIT"
    API_INVALID_RESPONSE = "API_INVALID_RESPONSE"

    # Storage Errors
    STORAGE_ERROR = "STORAGE_ERROR"
    STORAGE_QUOTA_EXCEEDED = "STORAGE_QUOTA_EXCEEDED"
    STORAGE_INVALID_KEY = "STORAGE_INVALID_KEY"

    # Cache Errors
    CACHE_WRITE_FAILED = "CACHE_WRITE_FAILED"
    CACHE_CORRUPTED = "CACHE_CORRUPTED"

    # Validation Errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Configuration Errors
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    CONFIG_MISSING = "CONFIG_MISSING"

    # Application Errors
    APPLICATION_ERROR = "APPLICATION_ERROR"
    OPERATION_CANCELLED = "OPERATION_CANCELLED"
    QUEUE_CLOSED = "QUEUE_CLOSED"

    # CLI Errors
    CLI_UNEXPECTED_ERROR = "CLI_UNEXPECTED_ERROR"


def _coerce_primitives(value: Any | None) -> dict[str, PrimitiveContextValue] | None:
    """Coerce additional_data values to primitives.

    Converts Path, Enum, Decimal to primitive types. ``None`` values are
    dropped so optional fields can be passed straight through.

    Args:
        value: Input dictionary or None

    Returns:
        Dictionary with primitive values only, or None

    Raises:
        TypeError: If value is not a dict or contains unconvertible types
    """
    if value is None:
        return None

    if not isinstance(value, dict):
        error_msg = f"additional_data must be dict, got {type(value).__name__}"
        raise TypeError(error_msg)

    coerced: dict[str, PrimitiveContextValue] = {}
    for key, val in value.items():
        if val is None:
            continue
        if isinstance(val, Enum):
            coerced[key] = val.value
        elif isinstance(val, (str, int, float, bool)):
            coerced[key] = val
        elif isinstance(val, Path):
            coerced[key] = str(val)
        elif isinstance(val, Decimal):
            coerced[key] = float(val)
        else:
            error_msg = (
                f"Cannot coerce {type(val).__name__} to primitive type. "
                f"Only str, int, float, bool, Path, Enum, Decimal are allowed."
            )
            raise TypeError(error_msg)

    return coerced


@dataclass(frozen=True)
class ErrorContextModel:
    """Context information for errors.

    Only primitive types (str, int, float, bool) are allowed in
    additional_data to ensure safe serialization.

    Attributes:
        url: Optional URL the failing operation was working on
        operation: Optional operation name that caused the error
        additional_data: Optional dict with primitive values only
    """

    url: str | None = None
    operation: str | None = None
    additional_data: dict[str, PrimitiveContextValue] | None = None

    def __post_init__(self) -> None:
        """Post-initialization validation and coercion."""
        if self.additional_data is not None:
            coerced = _coerce_primitives(self.additional_data)
            object.__setattr__(self, "additional_data", coerced)

    def safe_dict(self) -> dict[str, Any]:
        """Export context as a log-friendly dict.

        Unset fields are left out; ``additional_data`` is always present.

        Example:
            >>> ErrorContextModel(url="https://a.b").safe_dict()
            {'url': 'https://a.b', 'additional_data': {}}
        """
        data: dict[str, Any] = {}
        if self.url is not None:
            data["url"] = self.url
        if self.operation is not None:
            data["operation"] = self.operation
        data["additional_data"] = self.additional_data or {}
        return data


ErrorContext = ErrorContextModel


class LinkPreviewError(Exception):
    """Base exception class for all LinkPreview errors."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        context: ErrorContext | None = None,
        original_error: BaseException | None = None,
    ) -> None:
        """Initialize LinkPreviewError.

        Args:
            code: Error code from ErrorCode enum
            message: Human-readable error message
            context: Additional context information
            original_error: Original exception that caused this error
        """
        self.code = code
        self.message = message
        self.context = context or ErrorContext()
        self.original_error = original_error

        super().__init__(f"{code.value}: {message}")

    def __str__(self) -> str:
        """Return string representation of the error."""
        return f"{self.code.value}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging.

        Returns:
            Dictionary representation of the error with code, message,
            context, and original_error (if present)
        """
        return {
            "code": self.code.value,
            "message": self.message,
            "context": self.context.safe_dict(),
            "original_error": str(self.original_error) if self.original_error else None,
        }


class DomainError(LinkPreviewError):
    """Domain-specific errors.

    Examples:
    - Invalid URL handed to the pipeline
    - Cache entry that fails validation
    """


class InfrastructureError(LinkPreviewError):
    """Infrastructure-related errors.

    These errors occur when interacting with external systems like the
    metadata endpoint or the persistent key-value store.
    """


class PreviewNetworkError(InfrastructureError):
    """Transport or HTTP status failure talking to the metadata endpoint.

    Attributes:
        status_code: HTTP status when a response was received, else None
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        context: ErrorContext | None = None,
        original_error: BaseException | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(code, message, context, original_error)
        self.status_code = status_code


class PreviewTimeoutError(PreviewNetworkError):
    """The metadata request exceeded its hard timeout and was cancelled."""


class MalformedResponseError(InfrastructureError):
    """The endpoint answered, but the body is unusable.

    Covers non-JSON bodies, schema mismatches and a ``status`` other than
    ``"success"``.
    """


class StorageError(InfrastructureError):
    """Persistent key-value store failure."""


class StorageQuotaError(StorageError):
    """The persistent store refused a write because its capacity is spent."""


class ApplicationError(LinkPreviewError):
    """Application-level errors (configuration, lifecycle misuse)."""


class CliError(ApplicationError):
    """CLI-specific error with an exit code."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        context: ErrorContext | None = None,
        original_error: BaseException | None = None,
        command: str | None = None,
        exit_code: int = 1,
    ):
        super().__init__(code, message, context, original_error)
        self.command = command
        self.exit_code = exit_code


# Convenience functions for common error scenarios
def create_network_error(
    url: str,
    message: str,
    status_code: int | None = None,
    original_error: BaseException | None = None,
) -> PreviewNetworkError:
    """Create a network error, picking the code from the HTTP status."""
    if status_code is None:
        code = ErrorCode.NETWORK_ERROR
    elif status_code == 429:  # noqa: PLR2004
        code = ErrorCode.API_RATE_LIMIT
    elif status_code >= 500:  # noqa: PLR2004
        code = ErrorCode.API_SERVER_ERROR
    else:
        code = ErrorCode.API_REQUEST_FAILED

    context = ErrorContext(
        url=url,
        operation="fetch_metadata",
        additional_data={"status_code": status_code},
    )
    return PreviewNetworkError(code, message, context, original_error, status_code)


def create_timeout_error(
    url: str,
    timeout: float,
    original_error: BaseException | None = None,
) -> PreviewTimeoutError:
    """Create a timeout error with context."""
    context = ErrorContext(
        url=url,
        operation="fetch_metadata",
        additional_data={"timeout": timeout},
    )
    return PreviewTimeoutError(
        ErrorCode.API_TIMEOUT,
        f"Metadata request timed out after {timeout:.1f}s",
        context,
        original_error,
    )


def create_malformed_response_error(
    url: str,
    message: str,
    original_error: BaseException | None = None,
) -> MalformedResponseError:
    """Create a malformed response error with context."""
    context = ErrorContext(url=url, operation="parse_metadata")
    return MalformedResponseError(
        ErrorCode.API_INVALID_RESPONSE,
        message,
        context,
        original_error,
    )


def create_cli_error(
    message: str,
    command: str | None = None,
    operation: str | None = None,
    original_error: BaseException | None = None,
    exit_code: int = 1,
) -> CliError:
    """Create a CLI error with context."""
    context = ErrorContext(
        operation=operation,
        additional_data={"command": command} if command else None,
    )
    return CliError(
        ErrorCode.CLI_UNEXPECTED_ERROR,
        message,
        context,
        original_error,
        command,
        exit_code,
    )
