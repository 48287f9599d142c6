"""
Mock Upstream Responses

Pre-defined playlists, manifests and guides served by the fake upstream.
"""

from .playlist_responses import (
    HLS_MEDIA_PLAYLIST,
    HTML_REDIRECT_PAGE,
    M3U_A1_CHANNEL,
    M3U_SINGLE_CHANNEL,
    M3U_THREE_CHANNELS,
)
from .xmltv_responses import xmltv_document, xmltv_time

__all__ = [
    "HLS_MEDIA_PLAYLIST",
    "HTML_REDIRECT_PAGE",
    "M3U_A1_CHANNEL",
    "M3U_SINGLE_CHANNEL",
    "M3U_THREE_CHANNELS",
    "xmltv_document",
    "xmltv_time",
]
