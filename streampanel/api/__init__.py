"""API routes for StreamPanel"""

from .health import router as health_router
from .import_api import router as import_router
from .playback import router as playback_router
from .playlist import router as playlist_router
from .proxy import router as proxy_router

__all__ = [
    "health_router",
    "import_router",
    "playback_router",
    "playlist_router",
    "proxy_router",
]
