"""Metadata endpoint configuration model.

This module contains the configuration of the remote metadata endpoint and
of the request queue that calls it.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from linkpreview.shared.constants import NetworkConfig


class APISettings(BaseModel):
    """Metadata endpoint and request queue configuration."""

    endpoint: str = Field(
        default=NetworkConfig.ENDPOINT,
        min_length=1,
        description="Metadata extraction endpoint",
    )
    timeout: float = Field(
        default=NetworkConfig.REQUEST_TIMEOUT,
        gt=0,
        description="Hard timeout per attempt in seconds",
    )
    max_retries: int = Field(
        default=NetworkConfig.MAX_RETRIES,
        ge=0,
        description="Retries after the first attempt",
    )
    max_concurrent: int = Field(
        default=NetworkConfig.MAX_CONCURRENT,
        gt=0,
        description="Maximum number of requests in flight",
    )
    user_agent: str = Field(
        default=NetworkConfig.USER_AGENT,
        description="User-Agent header sent to the endpoint",
    )


__all__ = ["APISettings"]
