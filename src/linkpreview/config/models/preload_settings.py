"""Preloader configuration model."""

from __future__ import annotations

from pydantic import BaseModel, Field

from linkpreview.shared.constants import PreloadConfig


class PreloadSettings(BaseModel):
    """Viewport preloader configuration."""

    budget: int = Field(
        default=PreloadConfig.BUDGET,
        ge=0,
        description="Prefetches scheduled per render cycle",
    )
    delay: float = Field(
        default=PreloadConfig.DELAY,
        ge=0,
        description="Seconds to wait before a scheduled prefetch is submitted",
    )
    root_margin: float = Field(
        default=PreloadConfig.ROOT_MARGIN,
        ge=0,
        description="Viewport expansion in pixels",
    )
    threshold: float = Field(
        default=PreloadConfig.THRESHOLD,
        ge=0,
        le=1,
        description="Visible fraction of an item that counts as intersecting",
    )


__all__ = ["PreloadSettings"]
