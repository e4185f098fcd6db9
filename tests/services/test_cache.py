"""Tests for the dual-layer preview cache."""

from __future__ import annotations

import logging

import orjson
import pytest

from linkpreview.services.cache import PreviewCache, make_cache_key
from linkpreview.services.storage import DirectoryKeyValueStore, MemoryKeyValueStore
from linkpreview.shared.constants import CacheConfig
from linkpreview.shared.errors import DomainError, ErrorCode
from linkpreview.shared.models.metadata import CacheEntry, LinkMetadata
from linkpreview.shared.types.outcome import Miss, Ok, OutcomeSource


def _meta(title: str = "Example") -> LinkMetadata:
    return LinkMetadata(title=title, domain="example.com")


def _url(index: int) -> str:
    return f"https://example.com/page/{index}"


class TestMakeCacheKey:
    """Test persisted key derivation."""

    def test_key_is_prefixed_sha256_slice(self) -> None:
        """Test the key is the prefix plus 40 hex digits."""
        key = make_cache_key("https://example.com")

        assert key.startswith(CacheConfig.KEY_PREFIX)
        digest = key[len(CacheConfig.KEY_PREFIX) :]
        assert len(digest) == CacheConfig.HASH_KEY_LENGTH
        assert all(c in "0123456789abcdef" for c in digest)

    def test_key_is_deterministic(self) -> None:
        """Test the same URL always maps to the same key."""
        assert make_cache_key("https://a.example/x") == make_cache_key("https://a.example/x")
        assert make_cache_key("https://a.example/x") != make_cache_key("https://a.example/y")

    def test_lone_surrogate_is_hashed(self) -> None:
        """Test a URL with a lone surrogate still yields a hex key."""
        key = make_cache_key("https://example.com/\ud800")

        assert key.startswith(CacheConfig.KEY_PREFIX)
        assert len(key) == len(CacheConfig.KEY_PREFIX) + CacheConfig.HASH_KEY_LENGTH

    def test_fallback_key_when_hashing_fails(self) -> None:
        """Test a non-string input falls back to the rolling hash key."""
        key = make_cache_key(12345, "lp2_")  # type: ignore[arg-type]

        assert key.startswith("lp2_h")
        assert key[len("lp2_h") :].isalnum()

    def test_custom_prefix(self) -> None:
        """Test the prefix is configurable."""
        assert make_cache_key("https://example.com", "test_").startswith("test_")


class TestPreviewCacheLookup:
    """Test reads from both layers."""

    def test_miss_on_empty_cache(self, cache: PreviewCache) -> None:
        """Test an unknown URL is a miss and is counted."""
        outcome = cache.lookup(_url(1))

        assert outcome == Miss()
        assert cache.get(_url(1)) is None
        assert cache.metrics.cache_misses == 2
        assert cache.metrics.cache_hits == 0

    def test_memory_hit_after_set(self, cache: PreviewCache) -> None:
        """Test a fresh entry is served from memory and counted as a hit."""
        cache.set(_url(1), _meta())

        outcome = cache.lookup(_url(1))

        assert isinstance(outcome, Ok)
        assert outcome.source is OutcomeSource.MEMORY
        assert outcome.metadata.title == "Example"
        assert cache.metrics.cache_hits == 1

    def test_entry_just_below_ttl_is_fresh(self, cache: PreviewCache, clock) -> None:
        """Test an entry younger than the TTL is a hit."""
        cache.set(_url(1), _meta())
        clock.advance(CacheConfig.TTL - 0.001)

        assert cache.get(_url(1)) is not None

    def test_entry_exactly_ttl_old_is_expired(self, cache: PreviewCache, store, clock) -> None:
        """Test an entry exactly TTL seconds old is a miss and is removed."""
        cache.set(_url(1), _meta())
        key = cache.key_for(_url(1))
        clock.advance(CacheConfig.TTL)

        assert cache.lookup(_url(1)) == Miss()
        assert store.get(key) is None
        assert key not in cache.persisted_keys
        assert cache.memory_size == 0

    def test_persisted_entry_is_promoted(self, cache: PreviewCache, store, metrics, clock) -> None:
        """Test a fresh cache instance serves from storage, then from memory."""
        cache.set(_url(1), _meta("Stored"))

        reopened = PreviewCache(store, metrics, clock=clock)
        first = reopened.lookup(_url(1))
        second = reopened.lookup(_url(1))

        assert isinstance(first, Ok)
        assert first.source is OutcomeSource.STORAGE
        assert first.metadata.title == "Stored"
        assert isinstance(second, Ok)
        assert second.source is OutcomeSource.MEMORY

    def test_corrupt_persisted_entry_is_a_miss(self, cache: PreviewCache, store) -> None:
        """Test an unreadable persisted value is removed and reported as a miss."""
        key = cache.key_for(_url(1))
        store.set(key, "{not json")

        assert cache.lookup(_url(1)) == Miss()
        assert store.get(key) is None

    def test_url_mismatch_is_a_miss(self, cache: PreviewCache, store, clock) -> None:
        """Test an entry stored for another URL under the same key is discarded."""
        key = cache.key_for(_url(1))
        foreign = CacheEntry(url=_url(2), data=_meta(), inserted_at=clock())
        store.set(key, foreign.model_dump_json())

        assert cache.lookup(_url(1)) == Miss()
        assert store.get(key) is None


class TestPreviewCacheSet:
    """Test writes and the LRU policy."""

    def test_invalid_memory_capacity(self, store) -> None:
        """Test a non-positive memory capacity is rejected."""
        with pytest.raises(DomainError) as exc_info:
            PreviewCache(store, memory_capacity=0)

        assert exc_info.value.code == ErrorCode.VALIDATION_ERROR

    def test_set_persists_entry_and_index(self, cache: PreviewCache, store, clock) -> None:
        """Test a write stores the serialized entry and records its key."""
        cache.set(_url(1), _meta())
        key = cache.key_for(_url(1))

        stored = orjson.loads(store.get(key))
        assert stored["url"] == _url(1)
        assert stored["inserted_at"] == clock()
        assert orjson.loads(store.get(cache.index_key)) == [key]

    def test_overwrite_moves_key_to_end(self, cache: PreviewCache) -> None:
        """Test rewriting a URL moves its key to the newest index slot."""
        cache.set(_url(1), _meta())
        cache.set(_url(2), _meta())
        cache.set(_url(1), _meta("Updated"))

        assert cache.persisted_keys == [cache.key_for(_url(2)), cache.key_for(_url(1))]
        assert cache.get(_url(1)).title == "Updated"

    def test_fifty_first_insert_drops_the_oldest(self, cache: PreviewCache, store) -> None:
        """Test inserting 51 URLs leaves 50 entries and drops the first."""
        for index in range(51):
            cache.set(_url(index), _meta())

        assert cache.memory_size == CacheConfig.MEMORY_CAPACITY
        assert len(cache.persisted_keys) == CacheConfig.MAX_PERSISTED_ENTRIES
        assert store.get(cache.key_for(_url(0))) is None
        assert cache.get(_url(0)) is None
        assert cache.get(_url(50)) is not None

    def test_memory_evicts_least_recently_used(self, store, metrics, clock) -> None:
        """Test a read refreshes recency in the memory layer."""
        cache = PreviewCache(store, metrics, memory_capacity=2, clock=clock)
        cache.set(_url(1), _meta())
        cache.set(_url(2), _meta())
        cache.lookup(_url(1))

        cache.set(_url(3), _meta())

        assert cache.lookup(_url(1)).source is OutcomeSource.MEMORY
        # Still persisted, so it comes back from storage
        assert cache.lookup(_url(2)).source is OutcomeSource.STORAGE

    def test_memory_hit_increments_hit_count(self, cache: PreviewCache) -> None:
        """Test each memory hit bumps the entry's hit count."""
        cache.set(_url(1), _meta())
        cache.get(_url(1))
        cache.get(_url(1))

        assert cache._memory[_url(1)].hit_count == 2

    def test_quota_failure_triggers_eviction(self, metrics, clock, mocker) -> None:
        """Test a refused write is absorbed and evicts instead of raising."""
        tiny_store = MemoryKeyValueStore(capacity_chars=30)
        cache = PreviewCache(tiny_store, metrics, clock=clock)
        evict_spy = mocker.spy(cache, "evict")

        cache.set(_url(1), _meta())

        evict_spy.assert_called_once()
        assert cache.persisted_keys == []
        assert cache.lookup(_url(1)).source is OutcomeSource.MEMORY

    def test_store_os_error_is_absorbed(self, metrics, clock, tmp_path, mocker) -> None:
        """Test a directory store failing its capacity check does not raise from set."""
        store = DirectoryKeyValueStore(tmp_path, capacity_bytes=1024)
        cache = PreviewCache(store, metrics, clock=clock)
        mocker.patch.object(DirectoryKeyValueStore, "_usage", side_effect=PermissionError("denied"))

        cache.set(_url(1), _meta())

        assert cache.persisted_keys == []
        assert cache.lookup(_url(1)).source is OutcomeSource.MEMORY

    def test_serialization_failure_logs_write_failed(self, cache: PreviewCache, mocker, caplog) -> None:
        """Test an entry that cannot be serialized is logged as a failed write."""
        mocker.patch.object(CacheEntry, "model_dump_json", side_effect=ValueError("not serializable"))

        with caplog.at_level(logging.WARNING, logger="linkpreview.services.cache"):
            cache.set(_url(1), _meta())

        codes = [getattr(record, "error_code", None) for record in caplog.records]
        assert "CACHE_WRITE_FAILED" in codes
        assert cache.persisted_keys == []


class TestPreviewCacheEviction:
    """Test bulk eviction and the byte budget."""

    def test_evict_trims_to_margin(self, cache: PreviewCache) -> None:
        """Test eviction keeps the newest max - margin keys."""
        for index in range(CacheConfig.MAX_PERSISTED_ENTRIES):
            cache.set(_url(index), _meta())

        removed = cache.evict()

        expected = CacheConfig.MAX_PERSISTED_ENTRIES - CacheConfig.EVICTION_MARGIN
        assert removed == CacheConfig.EVICTION_MARGIN
        assert cache.persisted_keys == [
            cache.key_for(_url(index))
            for index in range(CacheConfig.EVICTION_MARGIN, CacheConfig.MAX_PERSISTED_ENTRIES)
        ]
        assert len(cache.persisted_keys) == expected

    def test_evict_removes_expired_entries(self, cache: PreviewCache, clock) -> None:
        """Test expired entries go before any trimming."""
        for index in range(3):
            cache.set(_url(index), _meta())
        clock.advance(CacheConfig.TTL)
        cache.set(_url(99), _meta())

        removed = cache.evict()

        assert removed == 3
        assert cache.persisted_keys == [cache.key_for(_url(99))]

    def test_evict_removes_untracked_prefixed_keys(self, cache: PreviewCache, store) -> None:
        """Test prefixed keys missing from the index are cleaned up."""
        store.set(f"{CacheConfig.KEY_PREFIX}orphan", "{}")
        store.set("foreign_key", "keep me")

        removed = cache.evict()

        assert removed == 1
        assert store.get(f"{CacheConfig.KEY_PREFIX}orphan") is None
        assert store.get("foreign_key") == "keep me"

    def test_check_size_under_budget(self, cache: PreviewCache, store, mocker) -> None:
        """Test the measured size is two bytes per character of prefixed values."""
        cache.set(_url(1), _meta())
        store.set("foreign_key", "x" * 1000)
        evict_spy = mocker.spy(cache, "evict")

        total = cache.check_size()

        expected = sum(
            len(store.get(key)) * CacheConfig.BYTES_PER_CHAR
            for key in store.keys()
            if key.startswith(CacheConfig.KEY_PREFIX)
        )
        assert total == expected
        evict_spy.assert_not_called()

    def test_check_size_over_budget_evicts(self, store, metrics, clock, mocker) -> None:
        """Test exceeding the byte budget triggers eviction."""
        cache = PreviewCache(store, metrics, max_bytes=100, clock=clock)
        cache.set(_url(1), _meta())
        evict_spy = mocker.spy(cache, "evict")

        total = cache.check_size()

        assert total > 100
        evict_spy.assert_called_once()


class TestPreviewCacheIndex:
    """Test index persistence and maintenance."""

    def test_corrupt_index_starts_empty(self, store, metrics, clock) -> None:
        """Test an unparsable index is treated as empty."""
        store.set(f"{CacheConfig.KEY_PREFIX}{CacheConfig.INDEX_KEY_SUFFIX}", "oops")

        cache = PreviewCache(store, metrics, clock=clock)

        assert cache.persisted_keys == []

    def test_index_is_deduplicated_and_filtered(self, store, metrics, clock) -> None:
        """Test loading drops duplicates and keys outside the namespace."""
        index_key = f"{CacheConfig.KEY_PREFIX}{CacheConfig.INDEX_KEY_SUFFIX}"
        store.set(index_key, orjson.dumps(["lp2_a", "lp2_a", "other_b", 7, "lp2_c"]).decode())

        cache = PreviewCache(store, metrics, clock=clock)

        assert cache.persisted_keys == ["lp2_a", "lp2_c"]

    def test_delete_removes_both_layers(self, cache: PreviewCache, store) -> None:
        """Test delete drops the memory entry, the value and the index key."""
        cache.set(_url(1), _meta())
        key = cache.key_for(_url(1))

        assert cache.delete(_url(1)) is True
        assert cache.delete(_url(1)) is False
        assert store.get(key) is None
        assert cache.persisted_keys == []
        assert cache.memory_size == 0

    def test_clear_removes_everything(self, cache: PreviewCache, store) -> None:
        """Test clear removes every owned key and leaves foreign keys alone."""
        for index in range(3):
            cache.set(_url(index), _meta())
        store.set("foreign_key", "keep me")

        removed = cache.clear()

        assert removed == 3
        assert store.keys() == ["foreign_key"]
        assert cache.memory_size == 0
        assert cache.persisted_keys == []

    def test_stats(self, cache: PreviewCache) -> None:
        """Test the stats summary."""
        cache.set(_url(1), _meta())

        stats = cache.stats()

        assert stats["memory_entries"] == 1
        assert stats["persisted_entries"] == 1
        assert stats["persisted_bytes"] > 0
        assert stats["max_persisted_entries"] == CacheConfig.MAX_PERSISTED_ENTRIES
        assert stats["ttl_seconds"] == CacheConfig.TTL
