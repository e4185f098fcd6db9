"""Cache configuration model.

This module contains the configuration of the dual-layer preview cache:
TTL, memory and persisted entry limits, the byte budget and the location of
the persistent store.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator
from typing_extensions import Self

from linkpreview.shared.constants import CacheConfig


class CacheSettings(BaseModel):
    """Preview cache configuration."""

    ttl_seconds: float = Field(
        default=CacheConfig.TTL,
        gt=0,
        description="Entry time-to-live in seconds",
    )
    memory_capacity: int = Field(
        default=CacheConfig.MEMORY_CAPACITY,
        gt=0,
        description="Maximum number of entries kept in memory",
    )
    max_persisted_entries: int = Field(
        default=CacheConfig.MAX_PERSISTED_ENTRIES,
        gt=0,
        description="Maximum number of keys in the persisted index",
    )
    eviction_margin: int = Field(
        default=CacheConfig.EVICTION_MARGIN,
        ge=0,
        description="Bulk eviction stops this many entries below the maximum",
    )
    max_bytes: int = Field(
        default=CacheConfig.MAX_BYTES,
        gt=0,
        description="Byte budget of the persisted entries",
    )
    key_prefix: str = Field(
        default=CacheConfig.KEY_PREFIX,
        pattern=r"^[A-Za-z0-9_]+$",
        description="Namespace prefix of persisted keys",
    )
    storage_dir: str = Field(
        default=CacheConfig.DEFAULT_DIR,
        description="Directory of the persistent key-value store",
    )
    storage_capacity_bytes: int = Field(
        default=CacheConfig.STORAGE_CAPACITY_BYTES,
        gt=0,
        description="Hard capacity of the persistent key-value store",
    )

    @model_validator(mode="after")
    def _check_margin(self) -> Self:
        if self.eviction_margin >= self.max_persisted_entries:
            msg = (
                f"eviction_margin ({self.eviction_margin}) must be smaller than "
                f"max_persisted_entries ({self.max_persisted_entries})"
            )
            raise ValueError(msg)
        return self

    @property
    def index_key(self) -> str:
        """Key of the persisted index, e.g. ``lp2_meta``."""
        return f"{self.key_prefix}{CacheConfig.INDEX_KEY_SUFFIX}"


__all__ = ["CacheSettings"]
