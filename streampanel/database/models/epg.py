"""
EPG models: import sources, channel mappings and programmes.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from streampanel.database.models.base import Base, TimestampMixin, generate_uuid


class EPGSource(Base, TimestampMixin):
    """A configured XMLTV feed."""

    __tablename__ = "epg_sources"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    last_import: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    def __repr__(self) -> str:
        return f"<EPGSource {self.name}>"


class EPGChannel(Base, TimestampMixin):
    """
    Maps an XMLTV channel id onto a catalog stream.

    At most one mapping exists per stream.
    """

    __tablename__ = "epg_channels"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)

    # XMLTV <channel id="...">
    epg_channel_id: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    icon_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    stream_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("streams.id", ondelete="CASCADE"), nullable=False, unique=True
    )

    programs: Mapped[list["EPGProgram"]] = relationship(
        back_populates="channel", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<EPGChannel {self.epg_channel_id} -> {self.stream_id}>"


class EPGProgram(Base):
    """A programme airing on an EPG channel."""

    __tablename__ = "epg_programs"
    __table_args__ = (
        UniqueConstraint("channel_id", "start_time", name="uq_epg_programs_channel_start"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    channel_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("epg_channels.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    start_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    channel: Mapped[EPGChannel] = relationship(back_populates="programs")

    def __repr__(self) -> str:
        return f"<EPGProgram {self.title} @ {self.start_time}>"
