"""Fetch outcomes.

The pipeline never raises to its consumer. Every request settles into one
of three variants:

- ``Ok``: metadata is available, from the cache or the network
- ``Miss``: a synchronous cache lookup found nothing usable
- ``Failed``: the network path gave up (error, exhausted retries, cancellation)

Every variant exposes ``metadata`` so callers that only want
``LinkMetadata | None`` can project the outcome directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from linkpreview.shared.errors import ErrorCode
from linkpreview.shared.models.metadata import LinkMetadata


class OutcomeSource(str, Enum):
    """Where an ``Ok`` outcome's metadata came from."""

    MEMORY = "memory"
    STORAGE = "storage"
    NETWORK = "network"


@dataclass(frozen=True)
class Ok:
    """Metadata is available."""

    metadata: LinkMetadata
    source: OutcomeSource = OutcomeSource.NETWORK

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Miss:
    """Nothing usable in the cache."""

    @property
    def metadata(self) -> None:
        return None

    @property
    def ok(self) -> bool:
        return False


@dataclass(frozen=True)
class Failed:
    """The network path gave up.

    Attributes:
        code: Error code of the final failure
        reason: Human-readable reason
        attempts: Number of network attempts made (0 when cancelled before
            the first attempt started)
    """

    code: ErrorCode
    reason: str
    attempts: int = 0

    @property
    def metadata(self) -> None:
        return None

    @property
    def ok(self) -> bool:
        return False


CacheOutcome = Union[Ok, Miss]
FetchOutcome = Union[Ok, Miss, Failed]
