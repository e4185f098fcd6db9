"""
Cache Configuration Constants

This module provides the defaults of the dual-layer preview cache.
"""

# Base time units for TTL calculations
BASE_SECOND = 1
BASE_MINUTE = 60 * BASE_SECOND
BASE_HOUR = 60 * BASE_MINUTE
BASE_DAY = 24 * BASE_HOUR

# Base size units
BASE_KIB = 1024
BASE_MIB = 1024 * BASE_KIB


class CacheConfig:
    """Preview cache defaults."""

    TTL = 7 * BASE_DAY  # 7 days
    MEMORY_CAPACITY = 50  # entries kept in memory
    MAX_PERSISTED_ENTRIES = 50  # entries kept in the persistent store
    EVICTION_MARGIN = 10  # bulk eviction stops this far below the maximum
    MAX_BYTES = 5 * BASE_MIB  # persisted byte budget

    # Persisted key namespace (shared with unrelated data)
    KEY_PREFIX = "lp2_"
    INDEX_KEY_SUFFIX = "meta"
    HASH_KEY_LENGTH = 40

    # Characters are costed as UTF-16 code units
    BYTES_PER_CHAR = 2

    DEFAULT_DIR = ".linkpreview/cache"
    STORAGE_CAPACITY_BYTES = 10 * BASE_MIB


class StorageConfig:
    """Key-value store constants."""

    VALID_KEY_PATTERN = r"^[A-Za-z0-9_.-]+$"
    FILE_SUFFIX = ".kv"
    TEMP_SUFFIX = ".tmp"
    ENCODING = "utf-8"
