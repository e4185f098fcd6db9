"""Preview metadata models.

``LinkMetadata`` is the value handed to consumers. ``CacheEntry`` is what
the cache keeps in memory and writes to the persistent store.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class LinkMetadata(BaseModel):
    """Enriched metadata of one URL.

    Instances are frozen so a consumer never holds a handle into the cache.

    Attributes:
        title: Page title
        description: Page description
        image: Thumbnail URL ("" when none, always "" for channel pages)
        favicon: Favicon URL
        domain: Host name of the URL
        is_channel_page: True for YouTube channel and home pages

    Example:
        >>> meta = LinkMetadata(title="Video", domain="youtube.com")
        >>> meta.image
        ''
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    title: str = Field(default="", description="Page title")
    description: str = Field(default="", description="Page description")
    image: str = Field(default="", description="Thumbnail URL")
    favicon: str = Field(default="", description="Favicon URL")
    domain: str = Field(default="", description="Host name of the URL")
    is_channel_page: bool = Field(default=False, description="YouTube channel or home page")


class CacheEntry(BaseModel):
    """Cached metadata with its insertion time.

    Attributes:
        url: The URL the entry belongs to, compared on read to detect
            key collisions
        data: The cached metadata
        inserted_at: Epoch seconds of insertion, used for TTL
        hit_count: Number of memory-layer hits served
    """

    model_config = ConfigDict(validate_assignment=True)

    url: str = Field(..., description="Source URL")
    data: LinkMetadata = Field(..., description="Cached metadata")
    inserted_at: float = Field(..., ge=0, description="Insertion time (epoch seconds)")
    hit_count: int = Field(default=0, ge=0, description="Memory-layer hits")

    def is_fresh(self, now: float, ttl: float) -> bool:
        """Check whether the entry is still within its TTL.

        An entry exactly ``ttl`` seconds old is expired.

        Args:
            now: Current time in epoch seconds
            ttl: Time-to-live in seconds

        Returns:
            True if ``now - inserted_at < ttl``
        """
        return now - self.inserted_at < ttl
