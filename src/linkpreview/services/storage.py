"""Persistent key-value stores.

Two implementations of ``KeyValueStore``:

- ``MemoryKeyValueStore``: a dictionary with a character capacity, for
  tests and ephemeral sessions
- ``DirectoryKeyValueStore``: one UTF-8 file per key under a directory,
  with a byte capacity and atomic replacement of values

Both refuse a write that would exceed their capacity with
``StorageQuotaError`` and keep the previous value in that case.
"""

from __future__ import annotations

import logging
import os
import re
import tempfile
from pathlib import Path

from linkpreview.shared.constants import StorageConfig
from linkpreview.shared.errors import (
    ErrorCode,
    ErrorContext,
    StorageError,
    StorageQuotaError,
)

logger = logging.getLogger(__name__)

_VALID_KEY = re.compile(StorageConfig.VALID_KEY_PATTERN)


def validate_key(key: str) -> None:
    """Reject keys that are not safe as file names.

    Raises:
        StorageError: If the key contains anything outside ``[A-Za-z0-9_.-]``
    """
    if not _VALID_KEY.match(key) or key in {".", ".."}:
        raise StorageError(
            code=ErrorCode.STORAGE_INVALID_KEY,
            message=f"Invalid storage key: {key!r}",
            context=ErrorContext(operation="validate_key", additional_data={"key": key}),
        )


class MemoryKeyValueStore:
    """In-memory store with a capacity counted in characters.

    Keys and values both count toward the capacity.

    Args:
        capacity_chars: Maximum characters held, None for unbounded
    """

    def __init__(self, capacity_chars: int | None = None) -> None:
        self.capacity_chars = capacity_chars
        self._data: dict[str, str] = {}
        self._used = 0

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        validate_key(key)
        previous = self._data.get(key)
        freed = len(key) + len(previous) if previous is not None else 0
        needed = self._used - freed + len(key) + len(value)

        if self.capacity_chars is not None and needed > self.capacity_chars:
            raise StorageQuotaError(
                code=ErrorCode.STORAGE_QUOTA_EXCEEDED,
                message=f"Storage capacity of {self.capacity_chars} characters exceeded",
                context=ErrorContext(
                    operation="storage_set",
                    additional_data={"key": key, "needed": needed, "capacity": self.capacity_chars},
                ),
            )

        self._data[key] = value
        self._used = needed

    def remove(self, key: str) -> None:
        previous = self._data.pop(key, None)
        if previous is not None:
            self._used -= len(key) + len(previous)

    def keys(self) -> list[str]:
        return list(self._data)

    @property
    def used_chars(self) -> int:
        """Characters currently held."""
        return self._used

    def __len__(self) -> int:
        return len(self._data)


class DirectoryKeyValueStore:
    """File-backed store, one file per key.

    Values are written to a temporary file in the same directory and moved
    into place with ``os.replace``, so a reader never sees a partial value.
    The capacity is checked against the UTF-8 size of all stored values.

    Args:
        directory: Directory holding the value files, created on demand
        capacity_bytes: Maximum bytes of stored values, None for unbounded
    """

    def __init__(self, directory: str | Path, capacity_bytes: int | None = None) -> None:
        self.directory = Path(directory)
        self.capacity_bytes = capacity_bytes

        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(
                code=ErrorCode.STORAGE_ERROR,
                message=f"Failed to create storage directory: {e!s}",
                context=ErrorContext(
                    operation="storage_init",
                    additional_data={"directory": str(self.directory)},
                ),
                original_error=e,
            ) from e

        logger.debug("DirectoryKeyValueStore initialized at %s", self.directory)

    def _path_for(self, key: str) -> Path:
        validate_key(key)
        return self.directory / f"{key}{StorageConfig.FILE_SUFFIX}"

    @staticmethod
    def _size_of(value_file: Path) -> int:
        try:
            return value_file.stat().st_size
        except FileNotFoundError:
            return 0

    def _usage(self) -> int:
        return sum(
            self._size_of(value_file)
            for value_file in self.directory.glob(f"*{StorageConfig.FILE_SUFFIX}")
        )

    def get(self, key: str) -> str | None:
        value_file = self._path_for(key)
        try:
            return value_file.read_text(encoding=StorageConfig.ENCODING)
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(
                code=ErrorCode.STORAGE_ERROR,
                message=f"Failed to read storage key '{key}': {e!s}",
                context=ErrorContext(
                    operation="storage_get",
                    additional_data={"key": key, "file_path": str(value_file)},
                ),
                original_error=e,
            ) from e

    def set(self, key: str, value: str) -> None:
        value_file = self._path_for(key)
        context = ErrorContext(operation="storage_set", additional_data={"key": key})

        try:
            payload = value.encode(StorageConfig.ENCODING)
        except UnicodeEncodeError as e:
            raise StorageError(
                code=ErrorCode.STORAGE_ERROR,
                message=f"Value for key '{key}' is not encodable: {e!s}",
                context=context,
                original_error=e,
            ) from e

        if self.capacity_bytes is not None:
            try:
                needed = self._usage() - self._size_of(value_file) + len(payload)
            except OSError as e:
                raise StorageError(
                    code=ErrorCode.STORAGE_ERROR,
                    message=f"Failed to measure storage usage for key '{key}': {e!s}",
                    context=context,
                    original_error=e,
                ) from e
            if needed > self.capacity_bytes:
                raise StorageQuotaError(
                    code=ErrorCode.STORAGE_QUOTA_EXCEEDED,
                    message=f"Storage capacity of {self.capacity_bytes} bytes exceeded",
                    context=ErrorContext(
                        operation="storage_set",
                        additional_data={
                            "key": key,
                            "needed": needed,
                            "capacity": self.capacity_bytes,
                        },
                    ),
                )

        tmp_name: str | None = None
        try:
            with tempfile.NamedTemporaryFile(
                mode="wb",
                dir=self.directory,
                prefix=f".{key}.",
                suffix=StorageConfig.TEMP_SUFFIX,
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(payload)
            os.replace(tmp_name, value_file)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StorageError(
                code=ErrorCode.STORAGE_ERROR,
                message=f"Failed to write storage key '{key}': {e!s}",
                context=context,
                original_error=e,
            ) from e

    def remove(self, key: str) -> None:
        value_file = self._path_for(key)
        try:
            value_file.unlink()
        except FileNotFoundError:
            return
        except OSError as e:
            raise StorageError(
                code=ErrorCode.STORAGE_ERROR,
                message=f"Failed to remove storage key '{key}': {e!s}",
                context=ErrorContext(operation="storage_remove", additional_data={"key": key}),
                original_error=e,
            ) from e

    def keys(self) -> list[str]:
        suffix = StorageConfig.FILE_SUFFIX
        return sorted(
            value_file.name[: -len(suffix)]
            for value_file in self.directory.glob(f"*{suffix}")
        )
