"""LinkPreview Configuration Module

This module provides unified access to configuration models and settings
management for LinkPreview.
"""

from __future__ import annotations

from .loader import get_config, load_settings, reload_config
from .models import (
    APISettings,
    CacheSettings,
    LoggingSettings,
    PreloadSettings,
    Settings,
)

__all__ = [
    "APISettings",
    "CacheSettings",
    "LoggingSettings",
    "PreloadSettings",
    "Settings",
    "get_config",
    "load_settings",
    "reload_config",
]
