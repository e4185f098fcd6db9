"""Dual-layer preview cache.

This module provides the LRU cache sitting in front of the metadata
endpoint. A memory layer keeps recently used entries in access order; a
persistent layer keeps serialized entries in a ``KeyValueStore`` under
derived keys, tracked by an index in insertion order.

Persistence is best effort. A failed write (quota exhausted, store error,
unserializable entry) triggers a bulk eviction and is never raised to the
caller.
"""

from __future__ import annotations

import hashlib
import logging
import time
from collections import OrderedDict
from collections.abc import Callable
from typing import Any

import orjson
from pydantic import ValidationError

from linkpreview.core.statistics import PreviewMetrics
from linkpreview.shared.constants import CacheConfig
from linkpreview.shared.errors import (
    DomainError,
    ErrorCode,
    ErrorContext,
    InfrastructureError,
    StorageError,
)
from linkpreview.shared.logging import log_operation_error, log_operation_success
from linkpreview.shared.models.metadata import CacheEntry, LinkMetadata
from linkpreview.shared.protocols.storage import KeyValueStore
from linkpreview.shared.types.outcome import CacheOutcome, Miss, Ok, OutcomeSource

logger = logging.getLogger(__name__)

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def _to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def _rolling_hash(text: str) -> int:
    """31-based rolling hash over UTF-16 code units, wrapped to signed 32 bits."""
    value = 0
    encoded = text.encode("utf-16-le", "surrogatepass")
    for index in range(0, len(encoded), 2):
        unit = encoded[index] | (encoded[index + 1] << 8)
        value = (value * 31 + unit) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return abs(value)


def make_cache_key(url: str, prefix: str = CacheConfig.KEY_PREFIX) -> str:
    """Derive the persisted key of a URL.

    The key is the prefix followed by the first 40 hex digits of the
    SHA-256 of the URL. Lone surrogates are hashed as-is. If hashing fails
    the key falls back to ``<prefix>h<base36 rolling hash>``.

    Args:
        url: Any URL string
        prefix: Key namespace prefix

    Returns:
        A key of ``[A-Za-z0-9_]`` characters. Never raises.

    Example:
        >>> make_cache_key("https://example.com")[:4]
        'lp2_'
    """
    try:
        digest = hashlib.sha256(url.encode("utf-8", "surrogatepass")).hexdigest()
        return f"{prefix}{digest[: CacheConfig.HASH_KEY_LENGTH]}"
    except (AttributeError, TypeError, UnicodeError):
        return f"{prefix}h{_to_base36(_rolling_hash(str(url)))}"


class PreviewCache:
    """LRU cache with TTL and a persisted byte budget.

    Every ``get``/``lookup`` records exactly one hit or one miss in the
    shared metrics.

    Args:
        store: Persistent key-value store
        metrics: Shared metrics, a private instance when omitted
        ttl_seconds: Entry time-to-live; an entry exactly this old is expired
        memory_capacity: Maximum number of memory-layer entries
        max_persisted_entries: Maximum number of keys in the persisted index
        eviction_margin: Bulk eviction trims the index to
            ``max_persisted_entries - eviction_margin`` keys
        max_bytes: Byte budget enforced by ``check_size``
        key_prefix: Namespace prefix of every persisted key
        clock: Time source in epoch seconds
    """

    def __init__(
        self,
        store: KeyValueStore,
        metrics: PreviewMetrics | None = None,
        *,
        ttl_seconds: float = CacheConfig.TTL,
        memory_capacity: int = CacheConfig.MEMORY_CAPACITY,
        max_persisted_entries: int = CacheConfig.MAX_PERSISTED_ENTRIES,
        eviction_margin: int = CacheConfig.EVICTION_MARGIN,
        max_bytes: int = CacheConfig.MAX_BYTES,
        key_prefix: str = CacheConfig.KEY_PREFIX,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if memory_capacity <= 0:
            raise DomainError(
                code=ErrorCode.VALIDATION_ERROR,
                message=f"memory_capacity must be positive, got {memory_capacity}",
                context=ErrorContext(operation="cache_init"),
            )

        self.store = store
        self.metrics = metrics if metrics is not None else PreviewMetrics()
        self.ttl_seconds = ttl_seconds
        self.memory_capacity = memory_capacity
        self.max_persisted_entries = max_persisted_entries
        self.eviction_margin = eviction_margin
        self.max_bytes = max_bytes
        self.key_prefix = key_prefix
        self.index_key = f"{key_prefix}{CacheConfig.INDEX_KEY_SUFFIX}"
        self._clock = clock

        self._memory: OrderedDict[str, CacheEntry] = OrderedDict()
        self._index: list[str] = []

        self.load_index()

        logger.debug(
            "PreviewCache initialized (ttl=%ss, memory=%d, persisted=%d, index=%d keys)",
            ttl_seconds,
            memory_capacity,
            max_persisted_entries,
            len(self._index),
        )

    def key_for(self, url: str) -> str:
        """Persisted key of a URL under this cache's prefix."""
        return make_cache_key(url, self.key_prefix)

    # ------------------------------------------------------------------ read

    def get(self, url: str) -> LinkMetadata | None:
        """Return fresh cached metadata, or None.

        Args:
            url: URL to look up

        Returns:
            Cached metadata on a hit, None on a miss
        """
        return self.lookup(url).metadata

    def lookup(self, url: str) -> CacheOutcome:
        """Look a URL up in memory, then in the persistent store.

        A fresh memory hit moves the entry to the most-recently-used end and
        increments its hit count. An expired memory entry is dropped and the
        lookup falls through. A fresh persisted entry is promoted into
        memory; an expired or unreadable one is removed.

        Args:
            url: URL to look up

        Returns:
            ``Ok`` with the metadata and its layer, or ``Miss``
        """
        now = self._clock()

        entry = self._memory.get(url)
        if entry is not None:
            if entry.is_fresh(now, self.ttl_seconds):
                self._memory.move_to_end(url)
                entry.hit_count += 1
                self.metrics.record_cache_hit()
                logger.debug("Memory cache hit for %s", url)
                return Ok(entry.data, OutcomeSource.MEMORY)
            del self._memory[url]
            logger.debug("Memory cache entry expired for %s", url)

        key = self.key_for(url)
        entry = self._read_persisted(key, expected_url=url)
        if entry is None:
            self.metrics.record_cache_miss()
            return Miss()

        if not entry.is_fresh(now, self.ttl_seconds):
            logger.debug("Persisted cache entry expired for %s", url)
            self._discard_persisted(key)
            self.save_index()
            self.metrics.record_cache_miss()
            return Miss()

        self._remember(url, entry)
        self.metrics.record_cache_hit()
        logger.debug("Persisted cache hit for %s", url)
        return Ok(entry.data, OutcomeSource.STORAGE)

    def _read_persisted(self, key: str, expected_url: str | None = None) -> CacheEntry | None:
        """Read and validate one persisted entry.

        Unreadable entries and entries whose URL does not match are removed
        and reported as absent.
        """
        try:
            raw = self.store.get(key)
        except StorageError as e:
            log_operation_error(
                logger=logger,
                error=e,
                operation="cache_get",
                additional_context={"key": key},
                level=logging.WARNING,
            )
            return None

        if raw is None:
            return None

        try:
            entry = CacheEntry.model_validate(orjson.loads(raw))
        except (orjson.JSONDecodeError, ValidationError, TypeError) as e:
            error = DomainError(
                code=ErrorCode.CACHE_CORRUPTED,
                message=f"Persisted cache entry is unreadable: {e!s}",
                context=ErrorContext(
                    operation="cache_get",
                    additional_data={"key": key, "size": len(raw)},
                ),
                original_error=e,
            )
            log_operation_error(logger=logger, error=error, level=logging.WARNING)
            self._discard_persisted(key)
            self.save_index()
            return None

        if expected_url is not None and entry.url != expected_url:
            logger.warning(
                "Cache key collision on %s (stored %s, requested %s)",
                key,
                entry.url,
                expected_url,
            )
            self._discard_persisted(key)
            self.save_index()
            return None

        return entry

    # ----------------------------------------------------------------- write

    def set(self, url: str, data: LinkMetadata) -> None:
        """Insert or overwrite an entry in both layers.

        The memory layer evicts its least-recently-used entry first when
        full. The persisted write records the key at the end of the index;
        when the index outgrows its maximum its oldest key is dropped.

        Args:
            url: URL the metadata belongs to
            data: Metadata to cache
        """
        entry = CacheEntry(url=url, data=data, inserted_at=self._clock())
        self._remember(url, entry)

        key = self.key_for(url)
        context = ErrorContext(operation="cache_set", url=url, additional_data={"key": key})

        try:
            payload = entry.model_dump_json()
            self.store.set(key, payload)
        except (StorageError, ValueError) as e:
            if isinstance(e, StorageError):
                error: InfrastructureError = e
            else:
                error = InfrastructureError(
                    code=ErrorCode.CACHE_WRITE_FAILED,
                    message=f"Failed to serialize cache entry: {e!s}",
                    context=context,
                    original_error=e,
                )
            log_operation_error(
                logger=logger,
                error=error,
                operation="cache_set",
                additional_context=context,
                level=logging.WARNING,
            )
            self.evict()
            return

        self._index = [existing for existing in self._index if existing != key]
        self._index.append(key)
        if len(self._index) > self.max_persisted_entries:
            oldest = self._index.pop(0)
            self._remove_key(oldest)
        self.save_index()

        log_operation_success(
            logger=logger,
            operation="cache_set",
            duration_ms=0,
            context=context,
        )

    def _remember(self, url: str, entry: CacheEntry) -> None:
        if url in self._memory:
            del self._memory[url]
        while len(self._memory) >= self.memory_capacity:
            evicted_url, _ = self._memory.popitem(last=False)
            logger.debug("Evicted %s from memory cache", evicted_url)
        self._memory[url] = entry

    def delete(self, url: str) -> bool:
        """Remove a URL from both layers.

        Returns:
            True if anything was removed
        """
        removed = self._memory.pop(url, None) is not None
        key = self.key_for(url)
        if key in self._index or self._safe_get(key) is not None:
            self._discard_persisted(key)
            self.save_index()
            removed = True
        return removed

    def clear(self) -> int:
        """Remove every entry from both layers, including the index.

        Returns:
            Number of persisted keys removed
        """
        self._memory.clear()
        owned = set(self._index) | set(self._prefixed_keys())
        owned.discard(self.index_key)
        for key in owned:
            self._remove_key(key)
        self._index = []
        self._remove_key(self.index_key)
        logger.info("Cleared %d persisted preview entries", len(owned))
        return len(owned)

    # -------------------------------------------------------------- eviction

    def evict(self) -> int:
        """Bulk-evict persisted entries.

        First removes expired and unreadable entries (and prefixed keys the
        index does not track), then removes the oldest-inserted keys until
        the index holds at most ``max_persisted_entries - eviction_margin``
        keys. Order is insertion order, not access order.

        Returns:
            Number of persisted keys removed
        """
        now = self._clock()
        removed = 0
        kept: list[str] = []

        for key in self._index:
            entry = self._read_entry_quietly(key)
            if entry is None or not entry.is_fresh(now, self.ttl_seconds):
                self._remove_key(key)
                removed += 1
            else:
                kept.append(key)

        tracked = set(kept)
        for key in self._prefixed_keys():
            if key != self.index_key and key not in tracked:
                self._remove_key(key)
                removed += 1

        target = max(self.max_persisted_entries - self.eviction_margin, 0)
        while len(kept) > target:
            self._remove_key(kept.pop(0))
            removed += 1

        self._index = kept
        self.save_index()

        logger.info("Evicted %d persisted preview entries, %d remain", removed, len(kept))
        return removed

    def check_size(self) -> int:
        """Measure the persisted footprint and evict when over budget.

        Each prefixed value costs two bytes per character.

        Returns:
            Total bytes measured before any eviction
        """
        total = 0
        for key in self._prefixed_keys():
            value = self._safe_get(key)
            if value is not None:
                total += len(value) * CacheConfig.BYTES_PER_CHAR

        if total > self.max_bytes:
            logger.warning(
                "Preview cache exceeds its budget (%.1f MiB > %.1f MiB), evicting",
                total / (1024 * 1024),
                self.max_bytes / (1024 * 1024),
            )
            self.evict()
        return total

    # ----------------------------------------------------------------- index

    def load_index(self) -> list[str]:
        """Restore the persisted index from the store.

        A missing or corrupt index is treated as empty.

        Returns:
            The restored index
        """
        raw = self._safe_get(self.index_key)
        index: list[str] = []
        if raw:
            try:
                loaded = orjson.loads(raw)
            except orjson.JSONDecodeError:
                loaded = None
            if isinstance(loaded, list):
                seen: set[str] = set()
                for key in loaded:
                    if isinstance(key, str) and key.startswith(self.key_prefix) and key not in seen:
                        seen.add(key)
                        index.append(key)
            else:
                logger.warning("Persisted cache index is corrupt, starting empty")
        self._index = index
        return list(index)

    def save_index(self) -> None:
        """Write the index to the store; failures are logged and ignored."""
        try:
            self.store.set(self.index_key, orjson.dumps(self._index).decode("utf-8"))
        except StorageError as e:
            log_operation_error(
                logger=logger,
                error=e,
                operation="cache_save_index",
                additional_context={"index_size": len(self._index)},
                level=logging.WARNING,
            )

    # --------------------------------------------------------------- helpers

    def _safe_get(self, key: str) -> str | None:
        try:
            return self.store.get(key)
        except StorageError as e:
            log_operation_error(logger=logger, error=e, level=logging.WARNING)
            return None

    def _read_entry_quietly(self, key: str) -> CacheEntry | None:
        raw = self._safe_get(key)
        if raw is None:
            return None
        try:
            return CacheEntry.model_validate(orjson.loads(raw))
        except (orjson.JSONDecodeError, ValidationError, TypeError):
            return None

    def _prefixed_keys(self) -> list[str]:
        try:
            return [key for key in self.store.keys() if key.startswith(self.key_prefix)]
        except StorageError as e:
            log_operation_error(logger=logger, error=e, level=logging.WARNING)
            return []

    def _remove_key(self, key: str) -> None:
        try:
            self.store.remove(key)
        except StorageError as e:
            log_operation_error(logger=logger, error=e, level=logging.WARNING)

    def _discard_persisted(self, key: str) -> None:
        self._remove_key(key)
        self._index = [existing for existing in self._index if existing != key]

    # ----------------------------------------------------------------- stats

    @property
    def memory_size(self) -> int:
        """Number of memory-layer entries."""
        return len(self._memory)

    @property
    def persisted_keys(self) -> list[str]:
        """Copy of the persisted index, oldest first."""
        return list(self._index)

    def stats(self) -> dict[str, Any]:
        """Return a summary of both layers for the debug surface."""
        persisted_bytes = 0
        for key in self._index:
            value = self._safe_get(key)
            if value is not None:
                persisted_bytes += len(value) * CacheConfig.BYTES_PER_CHAR

        return {
            "memory_entries": len(self._memory),
            "memory_capacity": self.memory_capacity,
            "persisted_entries": len(self._index),
            "max_persisted_entries": self.max_persisted_entries,
            "persisted_bytes": persisted_bytes,
            "max_bytes": self.max_bytes,
            "ttl_seconds": self.ttl_seconds,
        }
