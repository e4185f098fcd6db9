"""Viewport intersection geometry.

Items and the viewport are vertical spans in the same scroll coordinate
space. The viewport is expanded by a margin on both edges before
intersecting, so items just outside the visible area count as entering.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from linkpreview.shared.constants import PreloadConfig


@dataclass(frozen=True)
class ObservedItem:
    """A link rendered in the host's list.

    Attributes:
        url: The link's URL
        top: Offset of the item's top edge
        height: Item height in pixels
    """

    url: str
    top: float
    height: float

    @property
    def bottom(self) -> float:
        return self.top + self.height


@dataclass(frozen=True)
class IntersectionEntry:
    """Intersection state of one item."""

    url: str
    is_intersecting: bool
    intersection_ratio: float = 0.0


def intersection_ratio(
    item: ObservedItem,
    viewport_top: float,
    viewport_height: float,
    margin: float = PreloadConfig.ROOT_MARGIN,
) -> float:
    """Visible fraction of an item inside the expanded viewport.

    A zero-height item counts as fully visible when its position lies
    inside the expanded viewport.
    """
    root_top = viewport_top - margin
    root_bottom = viewport_top + viewport_height + margin

    if item.height <= 0:
        return 1.0 if root_top <= item.top <= root_bottom else 0.0

    overlap = min(item.bottom, root_bottom) - max(item.top, root_top)
    if overlap <= 0:
        return 0.0
    return min(overlap / item.height, 1.0)


def compute_entries(
    items: Iterable[ObservedItem],
    viewport_top: float,
    viewport_height: float,
    *,
    margin: float = PreloadConfig.ROOT_MARGIN,
    threshold: float = PreloadConfig.THRESHOLD,
) -> list[IntersectionEntry]:
    """Compute the intersection state of every item.

    An item intersects when its visible ratio is positive and reaches the
    threshold.
    """
    entries = []
    for item in items:
        ratio = intersection_ratio(item, viewport_top, viewport_height, margin)
        entries.append(
            IntersectionEntry(
                url=item.url,
                is_intersecting=ratio > 0 and ratio >= threshold,
                intersection_ratio=ratio,
            ),
        )
    return entries
