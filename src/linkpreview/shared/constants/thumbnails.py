"""
Video Host Constants

Host names and URL shapes recognized by the thumbnail heuristic.
"""

from typing import ClassVar


class VideoHosts:
    """Known video hosts."""

    YOUTUBE: ClassVar[frozenset[str]] = frozenset({"youtube.com", "youtu.be"})
    YOUTUBE_SHORT = "youtu.be"
    BILIBILI = "bilibili.com"
    VIMEO = "vimeo.com"

    # Prefixes stripped before host comparison
    HOST_PREFIXES: ClassVar[tuple[str, ...]] = ("www.", "m.")


class YouTubePatterns:
    """YouTube URL shapes."""

    VIDEO_ID = r"[A-Za-z0-9_-]{11}"
    WATCH_PARAM = "v"
    SHORTS_PREFIX = "/shorts/"
    EMBED_PREFIX = "/embed/"
    CHANNEL_PATH = r"^/(@|channel/|c/|user/)"
    THUMBNAIL_URL = "https://i.ytimg.com/vi/{video_id}/hqdefault.jpg"


class OtherVideoPatterns:
    """Hosts whose covers come from the generic endpoint."""

    BILIBILI_VIDEO = r"/video/(BV[A-Za-z0-9]+|av\d+)"
    VIMEO_VIDEO = r"^/(\d+)"
