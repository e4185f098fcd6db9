"""Configuration domain models."""

from __future__ import annotations

from .api_settings import APISettings
from .app_settings import LoggingSettings
from .cache_settings import CacheSettings
from .preload_settings import PreloadSettings
from .settings import Settings

__all__ = [
    "APISettings",
    "CacheSettings",
    "LoggingSettings",
    "PreloadSettings",
    "Settings",
]
