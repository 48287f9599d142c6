"""
StreamPanel Stalker Portal Emulation Module

Serves MAG and other Ministra-compatible set-top boxes that identify
themselves by MAC address.

Components:
- stalker_router: FastAPI router for ``load.php`` and ``{type}.php``
- HANDLERS / TYPE_HANDLERS: ``(type, action)`` dispatch tables
"""

from streampanel.stalker.actions import HANDLERS, TYPE_HANDLERS, StalkerContext, dispatch
from streampanel.stalker.api import stalker_router
from streampanel.stalker.identity import effective_type, extract_mac

__all__ = [
    "HANDLERS",
    "TYPE_HANDLERS",
    "StalkerContext",
    "dispatch",
    "effective_type",
    "extract_mac",
    "stalker_router",
]
