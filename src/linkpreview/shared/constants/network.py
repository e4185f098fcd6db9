"""
Network Configuration Constants

This module contains the constants of the metadata endpoint client and the
request queue.
"""

from .cache import BASE_SECOND


class NetworkConfig:
    """Metadata endpoint and request queue constants."""

    ENDPOINT = "https://api.microlink.io/"
    URL_PARAM = "url"

    # Timeout settings
    REQUEST_TIMEOUT = 5 * BASE_SECOND  # hard timeout per attempt

    # Retry settings
    MAX_RETRIES = 2

    # Concurrency
    MAX_CONCURRENT = 2

    USER_AGENT = "LinkPreview/0.1.0"
    ACCEPT_JSON = "application/json"

    # Favicon fallback when the endpoint supplies no logo
    FAVICON_FALLBACK = "https://www.google.com/s2/favicons?domain={domain}&sz=32"
    FAVICON_SIZE = 32

    STATUS_SUCCESS = "success"


class HTTPStatusCodes:
    """HTTP status code helpers."""

    OK = 200
    MULTIPLE_CHOICES = 300
    BAD_REQUEST = 400
    TOO_MANY_REQUESTS = 429
    INTERNAL_SERVER_ERROR = 500

    @classmethod
    def is_success(cls, status_code: int) -> bool:
        """Check for a 2xx status."""
        return cls.OK <= status_code < cls.MULTIPLE_CHOICES

    @classmethod
    def is_server_error(cls, status_code: int) -> bool:
        """Check for a 5xx status."""
        return status_code >= cls.INTERNAL_SERVER_ERROR
