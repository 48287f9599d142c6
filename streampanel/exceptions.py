"""
StreamPanel exceptions.

Authentication failures are deliberately absent: the protocol adapters
encode them as native "not authenticated" payloads instead of raising.
"""

from typing import Optional


class StreamPanelError(Exception):
    """Base class for StreamPanel errors."""


class UpstreamFetchError(StreamPanelError):
    """
    Raised when an outbound fetch (M3U source, EPG source, proxied stream)
    fails, times out, or answers with a non-2xx status.
    """

    def __init__(
        self,
        url: str,
        message: str,
        status_code: Optional[int] = None,
        timed_out: bool = False,
    ):
        self.url = url
        self.message = message
        self.status_code = status_code
        self.timed_out = timed_out
        super().__init__(message)


class ImportInputError(StreamPanelError):
    """Raised when an import request carries no usable input."""
