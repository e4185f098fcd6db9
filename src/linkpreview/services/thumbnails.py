"""Direct thumbnail extraction for video hosts.

Pure functions, no I/O. For YouTube the thumbnail URL can be derived from
the video id, which is more accurate than whatever image the metadata
endpoint scrapes. Channel and home pages are detected so their banner
image is not shown as a preview.
"""

from __future__ import annotations

import logging
import re
from urllib.parse import SplitResult, parse_qs, urlsplit

from linkpreview.shared.constants import OtherVideoPatterns, VideoHosts, YouTubePatterns

logger = logging.getLogger(__name__)

_VIDEO_ID = re.compile(YouTubePatterns.VIDEO_ID)
_CHANNEL_PATH = re.compile(YouTubePatterns.CHANNEL_PATH)
_BILIBILI_VIDEO = re.compile(OtherVideoPatterns.BILIBILI_VIDEO, re.IGNORECASE)
_VIMEO_VIDEO = re.compile(OtherVideoPatterns.VIMEO_VIDEO)


def _normalize_host(hostname: str) -> str:
    for prefix in VideoHosts.HOST_PREFIXES:
        if hostname.startswith(prefix):
            return hostname[len(prefix) :]
    return hostname


def _split(url: str) -> tuple[SplitResult, str] | None:
    """Parse an absolute http(s) URL into its parts and normalized host."""
    try:
        parts = urlsplit(url)
        hostname = parts.hostname
    except (ValueError, TypeError, AttributeError):
        return None
    if parts.scheme not in {"http", "https"} or not hostname:
        return None
    return parts, _normalize_host(hostname)


def _query_param(parts: SplitResult, name: str) -> str:
    values = parse_qs(parts.query).get(name)
    return values[0] if values else ""


def _youtube_video_id(parts: SplitResult, host: str) -> str | None:
    path = parts.path
    if host == VideoHosts.YOUTUBE_SHORT:
        candidate = path[1:].split("/")[0]
    elif _query_param(parts, YouTubePatterns.WATCH_PARAM):
        candidate = _query_param(parts, YouTubePatterns.WATCH_PARAM)
    elif path.startswith(YouTubePatterns.SHORTS_PREFIX):
        candidate = path[len(YouTubePatterns.SHORTS_PREFIX) :].split("/")[0]
    elif path.startswith(YouTubePatterns.EMBED_PREFIX):
        candidate = path[len(YouTubePatterns.EMBED_PREFIX) :].split("/")[0]
    else:
        return None

    if candidate and _VIDEO_ID.fullmatch(candidate):
        return candidate
    return None


def extract_thumbnail(url: str) -> str | None:
    """Derive a thumbnail URL directly from a video URL.

    Supported shapes (a leading ``www.`` or ``m.`` is ignored):

    - ``https://youtu.be/<id>``
    - ``https://youtube.com/watch?v=<id>``
    - ``https://youtube.com/shorts/<id>``
    - ``https://youtube.com/embed/<id>``

    The id must be 11 characters of ``[A-Za-z0-9_-]``. Bilibili and Vimeo
    video pages are recognized but return None, the generic endpoint
    already reports their correct cover.

    Args:
        url: Any string

    Returns:
        ``https://i.ytimg.com/vi/<id>/hqdefault.jpg`` or None. Never raises.

    Example:
        >>> extract_thumbnail("https://youtu.be/dQw4w9WgXcQ")
        'https://i.ytimg.com/vi/dQw4w9WgXcQ/hqdefault.jpg'
        >>> extract_thumbnail("https://www.youtube.com/@SomeChannel") is None
        True
    """
    split = _split(url)
    if split is None:
        return None
    parts, host = split

    if host in VideoHosts.YOUTUBE:
        video_id = _youtube_video_id(parts, host)
        if video_id is None:
            return None
        return YouTubePatterns.THUMBNAIL_URL.format(video_id=video_id)

    if host == VideoHosts.BILIBILI and _BILIBILI_VIDEO.search(parts.path):
        logger.debug("Bilibili video page, cover left to the endpoint: %s", url)
        return None

    if host == VideoHosts.VIMEO and _VIMEO_VIDEO.match(parts.path):
        logger.debug("Vimeo video page, cover left to the endpoint: %s", url)
        return None

    return None


def is_channel_page(url: str) -> bool:
    """Check whether a URL is a YouTube channel or home page.

    Channel paths are ``/@name``, ``/channel/...``, ``/c/...`` and
    ``/user/...``; the bare home page counts as well. A URL that carries a
    video id (``?v=``, ``/shorts/``, ``/embed/`` or a ``youtu.be`` path) is
    never a channel page.

    Args:
        url: Any string

    Returns:
        True for channel and home pages. Never raises.
    """
    split = _split(url)
    if split is None:
        return False
    parts, host = split

    if host not in VideoHosts.YOUTUBE:
        return False

    path = parts.path
    looks_like_channel = bool(_CHANNEL_PATH.match(path)) or path in {"", "/"}
    has_video_id = (
        bool(_query_param(parts, YouTubePatterns.WATCH_PARAM))
        or path.startswith(YouTubePatterns.SHORTS_PREFIX)
        or path.startswith(YouTubePatterns.EMBED_PREFIX)
        or (host == VideoHosts.YOUTUBE_SHORT and len(path) > 1)
    )
    return looks_like_channel and not has_video_id
