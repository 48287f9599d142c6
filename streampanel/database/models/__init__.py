"""
StreamPanel Database Models
"""

from streampanel.database.models.base import Base, TimestampMixin, generate_uuid
from streampanel.database.models.category import LiveCategory, SeriesCategory, VodCategory
from streampanel.database.models.epg import EPGChannel, EPGProgram, EPGSource
from streampanel.database.models.settings import PanelSetting
from streampanel.database.models.stream import PLAYABLE_STATUSES, InputType, Stream, StreamStatus
from streampanel.database.models.user import StreamingUser, normalized_mac_column
from streampanel.database.models.vod import Series, SeriesEpisode, VodContent

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "generate_uuid",
    # Users
    "StreamingUser",
    "normalized_mac_column",
    # Live
    "InputType",
    "PLAYABLE_STATUSES",
    "Stream",
    "StreamStatus",
    # Categories
    "LiveCategory",
    "SeriesCategory",
    "VodCategory",
    # VOD / series
    "Series",
    "SeriesEpisode",
    "VodContent",
    # EPG
    "EPGChannel",
    "EPGProgram",
    "EPGSource",
    # Settings
    "PanelSetting",
]
