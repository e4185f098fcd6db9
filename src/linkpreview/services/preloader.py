"""Viewport-driven cache warm-up.

The preloader watches the links of a rendered list. When a link enters
the (margin-expanded) viewport and is not cached, a low-priority fetch is
scheduled after a short delay, so links the user is about to hover are
usually already cached. The number of prefetches per render cycle is
capped; ``reset()`` starts a new cycle.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from typing import Any

from linkpreview.services.cache import PreviewCache
from linkpreview.services.request_queue import Priority, RequestQueue
from linkpreview.services.viewport import IntersectionEntry, ObservedItem, compute_entries
from linkpreview.shared.constants import PreloadConfig

logger = logging.getLogger(__name__)


class Preloader:
    """Schedules prefetches for links entering the viewport.

    Args:
        cache: Cache consulted before scheduling and again before submitting
        queue: Queue receiving the prefetches at PREFETCH priority
        budget: Maximum prefetches scheduled per render cycle
        delay: Seconds between scheduling and submitting a prefetch
        root_margin: Viewport expansion in pixels
        threshold: Visible fraction that counts as intersecting
    """

    def __init__(
        self,
        cache: PreviewCache,
        queue: RequestQueue,
        *,
        budget: int = PreloadConfig.BUDGET,
        delay: float = PreloadConfig.DELAY,
        root_margin: float = PreloadConfig.ROOT_MARGIN,
        threshold: float = PreloadConfig.THRESHOLD,
    ) -> None:
        self.cache = cache
        self.queue = queue
        self.budget = budget
        self.delay = delay
        self.root_margin = root_margin
        self.threshold = threshold

        self._items: dict[str, ObservedItem] = {}
        self._intersecting: set[str] = set()
        self._scheduled: set[str] = set()
        self._count = 0
        self._pending: dict[str, asyncio.Task[None]] = {}

    # -------------------------------------------------------------- observing

    def observe(self, item: ObservedItem) -> None:
        """Start watching an item. Re-observing a URL replaces its geometry."""
        self._items[item.url] = item

    def observe_many(self, items: Iterable[ObservedItem]) -> None:
        for item in items:
            self.observe(item)

    def unobserve(self, url: str) -> None:
        self._items.pop(url, None)
        self._intersecting.discard(url)

    @property
    def observed(self) -> list[ObservedItem]:
        return list(self._items.values())

    def update_viewport(self, top: float, height: float) -> list[str]:
        """Recompute intersections for a new viewport position.

        Only items whose intersection state changed are reported, the way an
        intersection observer reports crossings.

        Args:
            top: Scroll offset of the viewport's top edge
            height: Viewport height

        Returns:
            URLs scheduled for prefetch by this update
        """
        entries = compute_entries(
            self._items.values(),
            top,
            height,
            margin=self.root_margin,
            threshold=self.threshold,
        )
        changed = []
        for entry in entries:
            was_intersecting = entry.url in self._intersecting
            if entry.is_intersecting == was_intersecting:
                continue
            if entry.is_intersecting:
                self._intersecting.add(entry.url)
            else:
                self._intersecting.discard(entry.url)
            changed.append(entry)
        return self.handle_entries(changed)

    # ------------------------------------------------------------- scheduling

    def handle_entries(self, entries: Iterable[IntersectionEntry]) -> list[str]:
        """Schedule prefetches for intersecting entries.

        An entry is skipped when its URL was already scheduled this cycle,
        when it is cached, or when the cycle's budget is spent.

        Returns:
            URLs scheduled by this call
        """
        scheduled = []
        for entry in entries:
            if not entry.is_intersecting:
                continue
            url = entry.url
            if url in self._scheduled:
                continue
            if self.cache.get(url) is not None:
                continue
            if self._count >= self.budget:
                continue

            self._scheduled.add(url)
            self._count += 1
            self._pending[url] = asyncio.get_running_loop().create_task(self._delayed_prefetch(url))
            scheduled.append(url)

        if scheduled:
            logger.debug(
                "Scheduled %d prefetch(es), %d/%d of the cycle budget used",
                len(scheduled),
                self._count,
                self.budget,
            )
        return scheduled

    async def _delayed_prefetch(self, url: str) -> None:
        try:
            await asyncio.sleep(self.delay)
            if self.cache.get(url) is not None:
                return
            logger.debug("Prefetching %s", url)
            self.queue.submit(url, Priority.PREFETCH)
        finally:
            current = asyncio.current_task()
            if self._pending.get(url) is current:
                del self._pending[url]

    # -------------------------------------------------------------- lifecycle

    def reset(self) -> None:
        """Start a new render cycle.

        Clears the budget, the scheduled set and all observations, and
        cancels prefetches still waiting for their delay. Prefetches already
        submitted to the queue are left running.
        """
        for task in self._pending.values():
            task.cancel()
        cancelled = len(self._pending)
        self._pending.clear()
        self._scheduled.clear()
        self._count = 0
        self._items.clear()
        self._intersecting.clear()
        if cancelled:
            logger.debug("Preloader reset, %d pending prefetch(es) cancelled", cancelled)

    async def close(self) -> None:
        """Reset and wait for cancelled prefetches to finish."""
        pending = list(self._pending.values())
        self.reset()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    def stats(self) -> dict[str, Any]:
        return {
            "observed": len(self._items),
            "scheduled": len(self._scheduled),
            "budget": self.budget,
            "budget_used": self._count,
            "pending": len(self._pending),
        }
