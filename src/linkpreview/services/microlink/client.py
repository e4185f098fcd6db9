"""Metadata endpoint client.

This module provides an asynchronous client for the remote metadata
extraction endpoint using aiohttp. The client performs exactly one HTTP
request per call; timeouts, retries and concurrency limits belong to the
request queue.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

import aiohttp
import orjson
from pydantic import ValidationError
from typing_extensions import Self

from linkpreview.shared.constants import HTTPStatusCodes, NetworkConfig
from linkpreview.shared.errors import (
    create_malformed_response_error,
    create_network_error,
)
from linkpreview.shared.logging import log_api_call
from linkpreview.shared.models.api.microlink import MicrolinkData, MicrolinkResponse

logger = logging.getLogger(__name__)


class MicrolinkClient:
    """Client of the metadata extraction endpoint.

    The HTTP session is created lazily on the first request and reused until
    ``close()``. A session passed in by the caller is used as-is and never
    closed by the client.

    Args:
        endpoint: Endpoint URL, queried as ``GET <endpoint>?url=<encoded>``
        user_agent: User-Agent header value
        session: Optional externally managed session

    Example:
        >>> async with MicrolinkClient() as client:
        ...     data = await client.fetch("https://example.com")
    """

    def __init__(
        self,
        endpoint: str = NetworkConfig.ENDPOINT,
        user_agent: str = NetworkConfig.USER_AGENT,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.user_agent = user_agent
        self._session = session
        self._owns_session = session is None
        self._session_lock = asyncio.Lock()

        self._request_count = 0
        self._failure_count = 0

    async def _get_session(self) -> aiohttp.ClientSession:
        async with self._session_lock:
            if self._session is None or self._session.closed:
                # The queue enforces the per-attempt timeout
                self._session = aiohttp.ClientSession(
                    timeout=aiohttp.ClientTimeout(total=None),
                    headers={
                        "User-Agent": self.user_agent,
                        "Accept": NetworkConfig.ACCEPT_JSON,
                    },
                )
                self._owns_session = True
                logger.debug("aiohttp.ClientSession created for %s", self.endpoint)
            return self._session

    async def fetch(self, url: str) -> MicrolinkData:
        """Fetch metadata of one URL.

        Args:
            url: Page URL

        Returns:
            Extracted metadata

        Raises:
            PreviewNetworkError: Transport failure or non-2xx status
            MalformedResponseError: Body is not JSON, does not match the
                response schema, or reports a status other than "success"
        """
        session = await self._get_session()
        self._request_count += 1
        start = time.perf_counter()

        try:
            async with session.get(
                self.endpoint,
                params={NetworkConfig.URL_PARAM: url},
            ) as response:
                duration_ms = (time.perf_counter() - start) * 1000
                log_api_call(
                    logger=logger,
                    endpoint=self.endpoint,
                    status_code=response.status,
                    duration_ms=round(duration_ms, 1),
                    context={"url": url},
                )

                if not HTTPStatusCodes.is_success(response.status):
                    self._failure_count += 1
                    raise create_network_error(
                        url,
                        f"Metadata endpoint returned HTTP {response.status}",
                        status_code=response.status,
                    )

                body = await response.read()
        except aiohttp.ClientError as e:
            self._failure_count += 1
            raise create_network_error(url, f"Network error: {e!s}", original_error=e) from e

        return self._parse(url, body)

    def _parse(self, url: str, body: bytes) -> MicrolinkData:
        try:
            payload: Any = orjson.loads(body)
        except orjson.JSONDecodeError as e:
            self._failure_count += 1
            raise create_malformed_response_error(
                url,
                "Metadata endpoint returned a non-JSON body",
                original_error=e,
            ) from e

        try:
            parsed = MicrolinkResponse.model_validate(payload)
        except ValidationError as e:
            self._failure_count += 1
            raise create_malformed_response_error(
                url,
                f"Unexpected response schema: {e.error_count()} error(s)",
                original_error=e,
            ) from e

        if parsed.status != NetworkConfig.STATUS_SUCCESS or parsed.data is None:
            self._failure_count += 1
            raise create_malformed_response_error(
                url,
                f"Metadata endpoint reported status '{parsed.status}': {parsed.message or 'no data'}",
            )

        return parsed.data

    def get_stats(self) -> dict[str, Any]:
        """Get client statistics.

        Returns:
            Dictionary containing client statistics
        """
        return {
            "endpoint": self.endpoint,
            "request_count": self._request_count,
            "failure_count": self._failure_count,
            "session_open": self._session is not None and not self._session.closed,
        }

    async def close(self) -> None:
        """Close the HTTP session if the client created it."""
        async with self._session_lock:
            if self._session is not None and self._owns_session and not self._session.closed:
                await self._session.close()
                logger.debug("aiohttp.ClientSession closed")
            self._session = None

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
