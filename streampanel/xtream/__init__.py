"""
StreamPanel Xtream Codes Emulation Module

Answers ``player_api.php`` requests from Xtream-compatible players
(TiviMate, IPTV Smarters, GSE and similar).

Components:
- xtream_router: FastAPI router for the player API
- ACTIONS: action name -> handler dispatch table
"""

from streampanel.xtream.actions import ACTIONS, XtreamContext, dispatch
from streampanel.xtream.api import xtream_router
from streampanel.xtream.categories import LiveCategoryIndex

__all__ = ["ACTIONS", "LiveCategoryIndex", "XtreamContext", "dispatch", "xtream_router"]
