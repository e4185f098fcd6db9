"""
Statistics Collection Module

This module provides the counters and derived gauges of the link preview
pipeline. One ``PreviewMetrics`` instance is shared by the cache and the
request queue and read by the debug surface.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class PreviewMetrics:
    """Counters of cache and network activity.

    Counters only increase until ``reset()``. Derived values are computed
    on read and never stored.

    Attributes:
        total_requests: Network attempts started, retries included
        cache_hits: Cache lookups answered from memory or storage
        cache_misses: Cache lookups that found nothing fresh
        errors: Requests that settled as failed
        total_load_time_ms: Summed latency of answered network attempts
        request_count: Number of answered network attempts
    """

    total_requests: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    errors: int = 0
    total_load_time_ms: float = 0.0
    request_count: int = 0

    def record_cache_hit(self) -> None:
        """Record a cache hit."""
        self.cache_hits += 1

    def record_cache_miss(self) -> None:
        """Record a cache miss."""
        self.cache_misses += 1

    def record_request(self) -> None:
        """Record the start of a network attempt."""
        self.total_requests += 1

    def record_load_time(self, duration_ms: float) -> None:
        """Record the latency of an answered network attempt.

        Args:
            duration_ms: Latency in milliseconds
        """
        self.total_load_time_ms += duration_ms
        self.request_count += 1

    def record_error(self) -> None:
        """Record a request that settled as failed."""
        self.errors += 1

    @property
    def hit_rate(self) -> float:
        """Fraction of cache lookups that hit, 0.0 when none happened."""
        total = self.cache_hits + self.cache_misses
        return self.cache_hits / total if total > 0 else 0.0

    @property
    def hit_rate_display(self) -> str:
        """Hit rate as a percentage string, e.g. ``"12.5%"``."""
        total = self.cache_hits + self.cache_misses
        if total == 0:
            return "0%"
        return f"{self.hit_rate * 100:.1f}%"

    @property
    def avg_load_time_ms(self) -> int:
        """Mean latency of answered network attempts, rounded."""
        if self.request_count == 0:
            return 0
        # Halves round up
        return math.floor(self.total_load_time_ms / self.request_count + 0.5)

    def snapshot(self) -> dict[str, Any]:
        """Return counters and derived values as a plain dictionary."""
        return {
            "total_requests": self.total_requests,
            "cache_hits": self.cache_hits,
            "cache_misses": self.cache_misses,
            "errors": self.errors,
            "total_load_time_ms": round(self.total_load_time_ms, 3),
            "request_count": self.request_count,
            "hit_rate": self.hit_rate,
            "hit_rate_display": self.hit_rate_display,
            "avg_load_time_ms": self.avg_load_time_ms,
        }

    def reset(self) -> None:
        """Reset every counter to zero."""
        self.total_requests = 0
        self.cache_hits = 0
        self.cache_misses = 0
        self.errors = 0
        self.total_load_time_ms = 0.0
        self.request_count = 0
        logger.debug("Preview metrics reset")
