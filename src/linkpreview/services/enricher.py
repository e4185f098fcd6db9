"""Merge endpoint metadata with the thumbnail heuristic."""

from __future__ import annotations

from urllib.parse import urlsplit

from linkpreview.services.thumbnails import extract_thumbnail, is_channel_page
from linkpreview.shared.constants import NetworkConfig
from linkpreview.shared.models.api.microlink import MicrolinkData
from linkpreview.shared.models.metadata import LinkMetadata


def _hostname(url: str) -> str:
    try:
        return urlsplit(url).hostname or ""
    except ValueError:
        return ""


def preferred_image(url: str, remote_image: str) -> str:
    """Pick the preview image of a URL.

    A direct video thumbnail beats the remote image. Channel pages get no
    image, their remote image is a banner.
    """
    direct = extract_thumbnail(url)
    if direct:
        return direct
    if is_channel_page(url):
        return ""
    return remote_image


def merge_preview(url: str, data: MicrolinkData) -> LinkMetadata:
    """Build the consumer-facing metadata of a URL.

    Args:
        url: The requested URL
        data: Metadata reported by the endpoint

    Returns:
        Metadata with the preferred image, a favicon (the endpoint's logo or
        a favicon service URL for the host) and the host as domain
    """
    domain = _hostname(url)
    favicon = data.logo_url or NetworkConfig.FAVICON_FALLBACK.format(domain=domain)

    return LinkMetadata(
        title=data.title or "",
        description=data.description or "",
        image=preferred_image(url, data.image_url),
        favicon=favicon,
        domain=domain,
        is_channel_page=is_channel_page(url),
    )
