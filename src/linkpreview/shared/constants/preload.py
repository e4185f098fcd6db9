"""
Preload Configuration Constants

Defaults of the viewport-driven preloader.
"""

from .cache import BASE_SECOND


class PreloadConfig:
    """Preloader constants."""

    BUDGET = 5  # prefetches per render cycle
    DELAY = 0.5 * BASE_SECOND  # wait before a prefetch is submitted
    ROOT_MARGIN = 100.0  # viewport expansion in pixels
    THRESHOLD = 0.1  # visible fraction that counts as intersecting
