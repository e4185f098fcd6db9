"""Link preview service.

``LinkPreviewService`` is the consumer-facing facade over the cache, the
request queue and the preloader. It never raises for a URL; failures come
back as ``None`` or as a ``Failed`` outcome.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from linkpreview.core.statistics import PreviewMetrics
from linkpreview.services.cache import PreviewCache
from linkpreview.services.preloader import Preloader
from linkpreview.services.request_queue import Priority, RequestQueue
from linkpreview.services.thumbnails import extract_thumbnail
from linkpreview.services.viewport import ObservedItem
from linkpreview.shared.models.metadata import LinkMetadata
from linkpreview.shared.types.outcome import FetchOutcome, Ok

logger = logging.getLogger(__name__)


class LinkPreviewService:
    """Facade used by the tooltip layer and the CLI.

    Args:
        cache: Preview cache
        queue: Request queue
        preloader: Viewport preloader
        metrics: Shared metrics, the cache's instance when omitted
    """

    def __init__(
        self,
        cache: PreviewCache,
        queue: RequestQueue,
        preloader: Preloader,
        metrics: PreviewMetrics | None = None,
    ) -> None:
        self.cache = cache
        self.queue = queue
        self.preloader = preloader
        self.metrics = metrics if metrics is not None else cache.metrics

    def get_cached(self, url: str) -> LinkMetadata | None:
        """Return cached metadata without touching the network.

        Entries cached before the direct thumbnail of their URL was known
        are corrected and stored again.
        """
        data = self.cache.get(url)
        if data is None:
            return None
        return self._correct_thumbnail(url, data)

    def _correct_thumbnail(self, url: str, data: LinkMetadata) -> LinkMetadata:
        direct = extract_thumbnail(url)
        if not direct or data.image == direct:
            return data
        corrected = data.model_copy(update={"image": direct})
        self.cache.set(url, corrected)
        logger.debug("Corrected cached thumbnail of %s", url)
        return corrected

    async def resolve(self, url: str, priority: Priority = Priority.INTERACTIVE) -> FetchOutcome:
        """Resolve a URL through the cache, then the queue.

        Returns:
            ``Ok`` from the cache or the network, or ``Failed``
        """
        outcome = self.cache.lookup(url)
        if isinstance(outcome, Ok):
            corrected = self._correct_thumbnail(url, outcome.metadata)
            if corrected is not outcome.metadata:
                return Ok(corrected, outcome.source)
            return outcome
        return await self.queue.fetch(url, priority)

    async def get_or_fetch(self, url: str) -> LinkMetadata | None:
        """Return metadata for a URL, fetching it on a cache miss."""
        outcome = await self.resolve(url)
        return outcome.metadata

    def rebind(self, items: Iterable[ObservedItem]) -> None:
        """Start a new render cycle with a freshly rendered list of links."""
        self.preloader.reset()
        self.preloader.observe_many(items)

    def debug_snapshot(self) -> dict[str, Any]:
        """Metrics, cache and queue state for a debug panel."""
        return {
            "metrics": self.metrics.snapshot(),
            "cache": self.cache.stats(),
            "queue": self.queue.stats(),
            "preloader": self.preloader.stats(),
        }

    async def close(self) -> None:
        """Stop the preloader and the queue."""
        await self.preloader.close()
        await self.queue.close()
        logger.debug("LinkPreviewService closed")
