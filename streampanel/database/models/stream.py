"""
Live stream model.
"""

from enum import Enum
from typing import Optional

from sqlalchemy import JSON, Boolean, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from streampanel.database.models.base import Base, TimestampMixin, generate_uuid


class InputType(str, Enum):
    """Source protocol of a live stream."""
    RTMP = "rtmp"
    RTSP = "rtsp"
    SRT = "srt"
    HLS = "hls"
    MPD = "mpd"
    UDP = "udp"


class StreamStatus(str, Enum):
    """Lifecycle status of a live stream."""
    LIVE = "live"
    ACTIVE = "active"
    INACTIVE = "inactive"
    ERROR = "error"
    TRANSCODING = "transcoding"


# Only these statuses are exposed to players
PLAYABLE_STATUSES = (StreamStatus.LIVE.value, StreamStatus.ACTIVE.value)


class Stream(Base, TimestampMixin):
    """
    A live channel.

    ``category`` and ``bouquet`` are free-text names rather than foreign
    keys; the Xtream adapter aliases unknown category names to synthetic ids.
    """

    __tablename__ = "streams"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    input_type: Mapped[str] = mapped_column(String(10), default=InputType.HLS.value, nullable=False)
    input_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    category: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    bouquet: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    channel_number: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    status: Mapped[str] = mapped_column(String(20), default=StreamStatus.INACTIVE.value, nullable=False)

    stream_icon: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    epg_channel_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Catch-up / DVR
    dvr_enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    dvr_duration: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    output_formats: Mapped[Optional[list[str]]] = mapped_column(JSON, nullable=True)

    @property
    def is_playable(self) -> bool:
        return self.status in PLAYABLE_STATUSES

    def __repr__(self) -> str:
        return f"<Stream {self.name} ({self.input_type})>"
