"""
Pytest configuration and shared fixtures for LinkPreview tests.

This module provides common fixtures used across the test modules: a
controllable clock, in-memory stores, a scripted metadata fetcher and
pre-wired cache/queue instances.
"""

from __future__ import annotations

import asyncio
import tempfile
from collections.abc import Callable, Generator
from pathlib import Path

import pytest

from linkpreview.core.statistics import PreviewMetrics
from linkpreview.services.cache import PreviewCache
from linkpreview.services.request_queue import RequestQueue
from linkpreview.services.storage import MemoryKeyValueStore
from linkpreview.shared.models.api.microlink import MicrolinkAsset, MicrolinkData


class FakeClock:
    """Manually advanced clock returning epoch seconds."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class Hang:
    """Scripted result that never completes."""


class ScriptedFetcher:
    """Metadata fetcher replaying scripted results per URL.

    Each call pops the next scripted item for its URL: a ``MicrolinkData``
    is returned, an exception is raised, ``Hang`` blocks forever. Without a
    script the default data is returned. While ``gate`` is set to an unset
    event, every call waits for it first.
    """

    def __init__(self, default: MicrolinkData) -> None:
        self.default = default
        self.scripts: dict[str, list[object]] = {}
        self.calls: list[str] = []
        self.gate: asyncio.Event | None = None
        self.active = 0
        self.max_active = 0

    def script(self, url: str, *results: object) -> None:
        self.scripts.setdefault(url, []).extend(results)

    def calls_for(self, url: str) -> int:
        return self.calls.count(url)

    async def fetch(self, url: str) -> MicrolinkData:
        self.calls.append(url)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.gate is not None:
                await self.gate.wait()
            queued = self.scripts.get(url)
            result = queued.pop(0) if queued else self.default
            if isinstance(result, Hang):
                await asyncio.sleep(3600)
            if isinstance(result, BaseException):
                raise result
            return result  # type: ignore[return-value]
        finally:
            self.active -= 1


def build_data(
    title: str = "Example Domain",
    description: str = "An example page",
    image_url: str | None = "https://example.com/og.png",
    logo_url: str | None = "https://example.com/favicon.ico",
) -> MicrolinkData:
    return MicrolinkData(
        title=title,
        description=description,
        image=MicrolinkAsset(url=image_url) if image_url else None,
        logo=MicrolinkAsset(url=logo_url) if logo_url else None,
    )


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to the temporary directory.
    """
    with tempfile.TemporaryDirectory() as temp_path:
        yield Path(temp_path)


@pytest.fixture
def make_data() -> Callable[..., MicrolinkData]:
    """Factory of endpoint metadata."""
    return build_data


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def metrics() -> PreviewMetrics:
    return PreviewMetrics()


@pytest.fixture
def store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def cache(store: MemoryKeyValueStore, metrics: PreviewMetrics, clock: FakeClock) -> PreviewCache:
    """Preview cache with default limits over an unbounded memory store."""
    return PreviewCache(store, metrics, clock=clock)


@pytest.fixture
def fetcher() -> ScriptedFetcher:
    return ScriptedFetcher(build_data())


@pytest.fixture
def queue(fetcher: ScriptedFetcher, cache: PreviewCache, metrics: PreviewMetrics) -> RequestQueue:
    """Request queue with default limits and a short timeout."""
    return RequestQueue(fetcher, cache, metrics, timeout=1.0)


@pytest.fixture
def hang() -> Hang:
    return Hang()
