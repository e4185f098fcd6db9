"""
LinkPreview Constants Module

This module provides centralized access to all constants used throughout
the LinkPreview package.
"""

from .cache import (
    BASE_DAY,
    BASE_HOUR,
    BASE_KIB,
    BASE_MIB,
    BASE_MINUTE,
    BASE_SECOND,
    CacheConfig,
    StorageConfig,
)
from .cli import CLICommands, CLIDefaults, CLIHelp
from .network import HTTPStatusCodes, NetworkConfig
from .preload import PreloadConfig
from .thumbnails import OtherVideoPatterns, VideoHosts, YouTubePatterns

__all__ = [
    "BASE_DAY",
    "BASE_HOUR",
    "BASE_KIB",
    "BASE_MIB",
    "BASE_MINUTE",
    "BASE_SECOND",
    "CLICommands",
    "CLIDefaults",
    "CLIHelp",
    "CacheConfig",
    "HTTPStatusCodes",
    "NetworkConfig",
    "OtherVideoPatterns",
    "PreloadConfig",
    "StorageConfig",
    "VideoHosts",
    "YouTubePatterns",
]
