"""
StreamPanel - IPTV middleware emulation

Serves a shared channel, VOD, series and EPG catalog to legacy clients:
- Xtream Codes player API (player_api.php)
- Stalker/Ministra portal for MAG-style set-top boxes
- M3U playlists and XMLTV/M3U import
- Same-origin HLS/DASH proxy
"""

__version__ = "1.0.0"
__author__ = "StreamPanel Contributors"
__license__ = "MIT"

from streampanel.config import get_config, load_config

__all__ = [
    "__version__",
    "get_config",
    "load_config",
]
