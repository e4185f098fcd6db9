"""Tests for the link preview facade."""

from __future__ import annotations

import pytest

from linkpreview.services.preloader import Preloader
from linkpreview.services.preview_service import LinkPreviewService
from linkpreview.services.viewport import ObservedItem
from linkpreview.shared.errors import ErrorCode, create_malformed_response_error
from linkpreview.shared.models.metadata import LinkMetadata
from linkpreview.shared.types.outcome import Failed, Ok, OutcomeSource

URL = "https://example.com/article"
VIDEO_URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
VIDEO_THUMBNAIL = "https://i.ytimg.com/vi/dQw4w9WgXcQ/hqdefault.jpg"


@pytest.fixture
def service(cache, queue, metrics) -> LinkPreviewService:
    return LinkPreviewService(cache, queue, Preloader(cache, queue, delay=0.01), metrics)


class TestGetCached:
    """Test synchronous cache reads."""

    def test_miss(self, service: LinkPreviewService) -> None:
        """Test an uncached URL returns None."""
        assert service.get_cached(URL) is None

    def test_hit(self, service: LinkPreviewService, cache) -> None:
        """Test a cached URL is returned as-is."""
        cache.set(URL, LinkMetadata(title="Cached", image="https://example.com/og.png"))

        assert service.get_cached(URL).title == "Cached"

    def test_stale_video_thumbnail_corrected(self, service: LinkPreviewService, cache) -> None:
        """Test a cached video entry gets its direct thumbnail and is stored again."""
        cache.set(VIDEO_URL, LinkMetadata(title="Video", image="https://yt/scraped.jpg"))

        corrected = service.get_cached(VIDEO_URL)

        assert corrected.image == VIDEO_THUMBNAIL
        assert corrected.title == "Video"
        assert cache.get(VIDEO_URL).image == VIDEO_THUMBNAIL


class TestResolve:
    """Test the cache-then-network path."""

    @pytest.mark.asyncio
    async def test_fetches_once_then_serves_from_cache(
        self, service: LinkPreviewService, fetcher
    ) -> None:
        """Test the second resolution of a URL never reaches the network."""
        first = await service.resolve(URL)
        second = await service.resolve(URL)

        assert isinstance(first, Ok)
        assert first.source is OutcomeSource.NETWORK
        assert isinstance(second, Ok)
        assert second.source is OutcomeSource.MEMORY
        assert fetcher.calls_for(URL) == 1

    @pytest.mark.asyncio
    async def test_failure_is_an_outcome(self, service: LinkPreviewService, fetcher) -> None:
        """Test a failing URL resolves to Failed instead of raising."""
        fetcher.script(URL, create_malformed_response_error(URL, "status is 'fail'"))

        outcome = await service.resolve(URL)

        assert isinstance(outcome, Failed)
        assert outcome.code == ErrorCode.API_INVALID_RESPONSE
        assert await service.get_or_fetch("https://other.example") is not None

    @pytest.mark.asyncio
    async def test_cached_video_corrected_on_resolve(self, service: LinkPreviewService, cache) -> None:
        """Test resolution applies the thumbnail correction to cache hits."""
        cache.set(VIDEO_URL, LinkMetadata(title="Video", image="https://yt/scraped.jpg"))

        outcome = await service.resolve(VIDEO_URL)

        assert isinstance(outcome, Ok)
        assert outcome.source is OutcomeSource.MEMORY
        assert outcome.metadata.image == VIDEO_THUMBNAIL


class TestLifecycle:
    """Test render cycles, debug output and shutdown."""

    @pytest.mark.asyncio
    async def test_rebind_starts_new_cycle(self, service: LinkPreviewService) -> None:
        """Test rebind replaces the observed items and restores the budget."""
        service.preloader.observe(ObservedItem("https://old.example", top=0, height=10))
        service.preloader.update_viewport(0, 500)

        service.rebind([ObservedItem("https://new.example", top=0, height=10)])

        assert [item.url for item in service.preloader.observed] == ["https://new.example"]
        assert service.preloader.stats()["budget_used"] == 0
        await service.close()

    @pytest.mark.asyncio
    async def test_debug_snapshot(self, service: LinkPreviewService) -> None:
        """Test the snapshot covers metrics, cache, queue and preloader."""
        await service.resolve(URL)

        snapshot = service.debug_snapshot()

        assert set(snapshot) == {"metrics", "cache", "queue", "preloader"}
        assert snapshot["metrics"]["total_requests"] == 1
        assert snapshot["metrics"]["cache_misses"] == 1
        assert snapshot["cache"]["persisted_entries"] == 1
        assert snapshot["queue"]["pending_urls"] == 0

    @pytest.mark.asyncio
    async def test_close(self, service: LinkPreviewService) -> None:
        """Test a closed service fails new network requests."""
        await service.close()

        outcome = await service.resolve(URL)

        assert isinstance(outcome, Failed)
        assert outcome.code == ErrorCode.QUEUE_CLOSED
