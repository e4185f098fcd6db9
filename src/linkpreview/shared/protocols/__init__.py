"""Protocol definitions for dependency inversion."""

from __future__ import annotations

from .services import MetadataFetcherProtocol
from .storage import KeyValueStore

__all__ = ["KeyValueStore", "MetadataFetcherProtocol"]
