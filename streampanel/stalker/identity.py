"""
Device identity for Stalker portal requests.

MAG-style boxes announce themselves in several ways depending on firmware;
the first non-empty source wins:

1. ``mac`` or ``stb_mac`` query parameter
2. ``mac=`` cookie (URL-encoded)
3. ``Authorization: MAC <value>`` header
"""

import re
from typing import Mapping, Optional
from urllib.parse import unquote

from streampanel.auth import normalize_mac

PORTAL_TYPE_PATTERN = re.compile(r"/([A-Za-z_]+)\.php$")
AUTHORIZATION_MAC_PATTERN = re.compile(r"^\s*MAC\s+(\S+)", re.IGNORECASE)


def extract_mac(
    params: Mapping[str, str],
    cookies: Mapping[str, str],
    authorization: Optional[str] = None,
) -> str:
    """Return the normalized MAC for a request, or an empty string."""
    raw = params.get("mac") or params.get("stb_mac")

    if not raw:
        cookie = cookies.get("mac")
        if cookie:
            raw = unquote(cookie)

    if not raw and authorization:
        match = AUTHORIZATION_MAC_PATTERN.match(authorization)
        if match:
            raw = unquote(match.group(1))

    return normalize_mac(raw)


def effective_type(params: Mapping[str, str], path: str) -> str:
    """``type`` query parameter, else the ``{type}`` of a trailing ``{type}.php``."""
    portal_type = params.get("type")
    if portal_type:
        return portal_type.lower()

    match = PORTAL_TYPE_PATTERN.search(path)
    if match:
        return match.group(1).lower()
    return ""
