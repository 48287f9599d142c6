"""Utility modules for StreamPanel"""

from .http import FetchResult, create_http_client, fetch_url
from .logging_setup import parse_size, setup_logging
from .timeutils import unix_seconds, unix_string, utcnow

__all__ = [
    "FetchResult",
    "create_http_client",
    "fetch_url",
    "parse_size",
    "setup_logging",
    "unix_seconds",
    "unix_string",
    "utcnow",
]
