"""
StreamPanel Streaming Module

Outward-facing stream URLs and the same-origin HLS/DASH proxy.
"""

from streampanel.streaming.hls_proxy import (
    HLSProxy,
    ProxyError,
    ProxyResponse,
    ProxyTarget,
    build_target_url,
    cache_control_for,
    content_type_for,
    rewrite_manifest,
)
from streampanel.streaming.url_resolver import StreamURLResolver, resolve_stream_url

__all__ = [
    "HLSProxy",
    "ProxyError",
    "ProxyResponse",
    "ProxyTarget",
    "StreamURLResolver",
    "build_target_url",
    "cache_control_for",
    "content_type_for",
    "resolve_stream_url",
    "rewrite_manifest",
]
