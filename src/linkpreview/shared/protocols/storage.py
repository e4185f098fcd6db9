"""Storage protocol for dependency inversion.

The cache depends on this interface only, so the persistent layer can be a
directory of files, an in-memory dictionary or a test double.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol, runtime_checkable


@runtime_checkable
class KeyValueStore(Protocol):
    """Synchronous string key-value store with a capacity limit.

    The store has no transactions. A write that would exceed the capacity
    raises ``StorageQuotaError`` and leaves the previous value in place.

    Example:
        >>> from linkpreview.services.storage import MemoryKeyValueStore
        >>> store: KeyValueStore = MemoryKeyValueStore()
        >>> store.set("lp2_meta", "[]")
        >>> store.get("lp2_meta")
        '[]'
    """

    def get(self, key: str) -> str | None:
        """Return the stored value, or None if the key is absent."""

    def set(self, key: str, value: str) -> None:
        """Store a value.

        Raises:
            StorageQuotaError: If the write would exceed the capacity
            StorageError: On any other store failure
        """

    def remove(self, key: str) -> None:
        """Remove a key. Removing an absent key is a no-op."""

    def keys(self) -> Iterable[str]:
        """Return all stored keys, including keys the cache does not own."""
