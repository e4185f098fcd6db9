"""Shared model exports."""

from .api import MicrolinkAsset, MicrolinkData, MicrolinkResponse
from .metadata import CacheEntry, LinkMetadata

__all__ = [
    "CacheEntry",
    "LinkMetadata",
    "MicrolinkAsset",
    "MicrolinkData",
    "MicrolinkResponse",
]
