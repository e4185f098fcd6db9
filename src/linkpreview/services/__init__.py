"""LinkPreview services.

This package contains the cache, the request queue, the preloader and the
endpoint client that make up the link preview pipeline.
"""

from .cache import PreviewCache, make_cache_key
from .enricher import merge_preview
from .microlink import MicrolinkClient
from .preloader import Preloader
from .preview_service import LinkPreviewService
from .request_queue import Priority, QueueTask, RequestQueue, TaskState
from .storage import DirectoryKeyValueStore, MemoryKeyValueStore
from .thumbnails import extract_thumbnail, is_channel_page
from .viewport import IntersectionEntry, ObservedItem

__all__ = [
    "DirectoryKeyValueStore",
    "IntersectionEntry",
    "LinkPreviewService",
    "MemoryKeyValueStore",
    "MicrolinkClient",
    "ObservedItem",
    "Preloader",
    "PreviewCache",
    "Priority",
    "QueueTask",
    "RequestQueue",
    "TaskState",
    "extract_thumbnail",
    "is_channel_page",
    "make_cache_key",
    "merge_preview",
]
