"""
StreamPanel Database Module

Provides the catalog models and session management.
"""

from streampanel.database.connection import (
    close_db,
    configure_sqlite,
    get_db,
    get_session_factory,
    init_db,
)
from streampanel.database.models import (
    PLAYABLE_STATUSES,
    Base,
    EPGChannel,
    EPGProgram,
    EPGSource,
    InputType,
    LiveCategory,
    PanelSetting,
    Series,
    SeriesCategory,
    SeriesEpisode,
    Stream,
    StreamingUser,
    StreamStatus,
    VodCategory,
    VodContent,
)

__all__ = [
    "close_db",
    "configure_sqlite",
    "get_db",
    "get_session_factory",
    "init_db",
    "PLAYABLE_STATUSES",
    "Base",
    "EPGChannel",
    "EPGProgram",
    "EPGSource",
    "InputType",
    "LiveCategory",
    "PanelSetting",
    "Series",
    "SeriesCategory",
    "SeriesEpisode",
    "Stream",
    "StreamingUser",
    "StreamStatus",
    "VodCategory",
    "VodContent",
]
