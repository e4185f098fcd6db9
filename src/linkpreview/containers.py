"""Dependency Injection container for LinkPreview.

This module provides a centralized DI container using dependency-injector
to wire the link preview pipeline.

The container manages:
- Settings (Singleton)
- Shared metrics (Singleton)
- The persistent key-value store and the preview cache (Singleton)
- The metadata endpoint client and the request queue (Singleton)
- The preloader and the consumer-facing service (Singleton)

Components are singletons per container so the cache, queue and preloader
of one container share one metrics instance and one in-flight index.
"""

from __future__ import annotations

from pathlib import Path

from dependency_injector import containers, providers

from linkpreview.config.loader import load_settings
from linkpreview.core.statistics import PreviewMetrics
from linkpreview.services.cache import PreviewCache
from linkpreview.services.microlink import MicrolinkClient
from linkpreview.services.preloader import Preloader
from linkpreview.services.preview_service import LinkPreviewService
from linkpreview.services.request_queue import RequestQueue
from linkpreview.services.storage import DirectoryKeyValueStore


class Container(containers.DeclarativeContainer):
    """Dependency Injection container for LinkPreview services.

    Example:
        >>> container = Container()
        >>> container.config.override(providers.Object(Settings()))
        >>> service = container.preview_service()
        >>> metadata = await service.get_or_fetch("https://example.com")
    """

    # Configuration
    config = providers.Singleton(load_settings)

    metrics = providers.Singleton(PreviewMetrics)

    # Persistent layer
    store = providers.Singleton(
        DirectoryKeyValueStore,
        directory=providers.Callable(
            lambda config: Path(config.cache.storage_dir).expanduser(),
            config=config,
        ),
        capacity_bytes=providers.Callable(
            lambda config: config.cache.storage_capacity_bytes,
            config=config,
        ),
    )

    cache = providers.Singleton(
        PreviewCache,
        store=store,
        metrics=metrics,
        ttl_seconds=providers.Callable(lambda config: config.cache.ttl_seconds, config=config),
        memory_capacity=providers.Callable(lambda config: config.cache.memory_capacity, config=config),
        max_persisted_entries=providers.Callable(
            lambda config: config.cache.max_persisted_entries,
            config=config,
        ),
        eviction_margin=providers.Callable(lambda config: config.cache.eviction_margin, config=config),
        max_bytes=providers.Callable(lambda config: config.cache.max_bytes, config=config),
        key_prefix=providers.Callable(lambda config: config.cache.key_prefix, config=config),
    )

    # Network
    fetcher = providers.Singleton(
        MicrolinkClient,
        endpoint=providers.Callable(lambda config: config.api.endpoint, config=config),
        user_agent=providers.Callable(lambda config: config.api.user_agent, config=config),
    )

    request_queue = providers.Singleton(
        RequestQueue,
        fetcher=fetcher,
        cache=cache,
        metrics=metrics,
        max_concurrent=providers.Callable(lambda config: config.api.max_concurrent, config=config),
        max_retries=providers.Callable(lambda config: config.api.max_retries, config=config),
        timeout=providers.Callable(lambda config: config.api.timeout, config=config),
    )

    preloader = providers.Singleton(
        Preloader,
        cache=cache,
        queue=request_queue,
        budget=providers.Callable(lambda config: config.preload.budget, config=config),
        delay=providers.Callable(lambda config: config.preload.delay, config=config),
        root_margin=providers.Callable(lambda config: config.preload.root_margin, config=config),
        threshold=providers.Callable(lambda config: config.preload.threshold, config=config),
    )

    preview_service = providers.Singleton(
        LinkPreviewService,
        cache=cache,
        queue=request_queue,
        preloader=preloader,
        metrics=metrics,
    )
