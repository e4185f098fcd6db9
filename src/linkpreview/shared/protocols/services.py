"""Service protocols for dependency inversion.

The request queue depends on this interface only, so tests can hand it a
scripted fetcher instead of the HTTP client.
"""

from __future__ import annotations

from typing import Protocol

from linkpreview.shared.models.api.microlink import MicrolinkData


class MetadataFetcherProtocol(Protocol):
    """Protocol for the metadata endpoint client.

    Example:
        >>> from linkpreview.services.microlink import MicrolinkClient
        >>> fetcher: MetadataFetcherProtocol = MicrolinkClient()
        >>> data = await fetcher.fetch("https://example.com")
    """

    async def fetch(self, url: str) -> MicrolinkData:
        """Fetch metadata of one URL.

        Args:
            url: Page URL

        Returns:
            Extracted metadata

        Raises:
            PreviewNetworkError: Transport failure or non-2xx status
            MalformedResponseError: Unusable body or non-"success" status
        """
