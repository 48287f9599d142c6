"""
Vendor-specific source URL rewrites applied during M3U import.

Each rule is a named function taking a URL and returning either a rewritten
URL or the input unchanged. Rules run in registration order, each seeing the
previous rule's output.
"""

import logging
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RewriteRule:
    name: str
    apply: Callable[[str], str]


def convert_a1_to_hls_ts(url: str) -> str:
    """
    Rewrite A1 protected-CDN DASH URLs to their HLS transport-stream form.

    Only URLs carrying an ``/__c/A1_`` (or ``/__c/a1_``) segment are touched.
    """
    if "/__c/A1_" not in url and "/__c/a1_" not in url:
        return url

    if "/dash-default/" in url or "/dash/" in url:
        return (
            url.replace("/dash-default/", "/hls-ts-avc/", 1)
            .replace("/dash/", "/hls-ts-avc/", 1)
            .replace(".mpd", ".m3u8", 1)
            .replace("/manifest.m3u8", "/master.m3u8", 1)
        )

    if url.endswith(".mpd"):
        return url.replace(".mpd", ".m3u8", 1)

    return url


DEFAULT_RULES: list[RewriteRule] = [
    RewriteRule("a1_hls_ts", convert_a1_to_hls_ts),
]


def rewrite_url(url: str, rules: list[RewriteRule] | None = None) -> str:
    """Run ``url`` through every rule in order."""
    for rule in DEFAULT_RULES if rules is None else rules:
        rewritten = rule.apply(url)
        if rewritten != url:
            logger.info(f"[{rule.name}] {url} -> {rewritten}")
            url = rewritten
    return url
