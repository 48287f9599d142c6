"""
Video-on-demand and series models.
"""

from typing import Optional

from sqlalchemy import Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from streampanel.database.models.base import Base, TimestampMixin, generate_uuid
from streampanel.database.models.category import SeriesCategory, VodCategory


class VodContent(Base, TimestampMixin):
    """A movie."""

    __tablename__ = "vod_content"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Metadata
    plot: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    cast_names: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    director: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    genre: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    release_date: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    rating: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    tmdb_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    cover_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Runtime in minutes
    duration: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    container_extension: Mapped[Optional[str]] = mapped_column(String(10), nullable=True, default="mp4")
    stream_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(String(20), default="active", nullable=False)

    category_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("vod_categories.id", ondelete="SET NULL"), nullable=True
    )
    category: Mapped[Optional[VodCategory]] = relationship(lazy="joined")

    def __repr__(self) -> str:
        return f"<VodContent {self.name}>"


class Series(Base, TimestampMixin):
    """A TV series; episodes hang off it."""

    __tablename__ = "series"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    plot: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    cast_names: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    director: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    genre: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    release_date: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    rating: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    tmdb_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    cover_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(String(20), default="active", nullable=False)

    category_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("series_categories.id", ondelete="SET NULL"), nullable=True
    )
    category: Mapped[Optional[SeriesCategory]] = relationship(lazy="joined")

    episodes: Mapped[list["SeriesEpisode"]] = relationship(
        back_populates="series",
        cascade="all, delete-orphan",
        order_by=lambda: [SeriesEpisode.season_number, SeriesEpisode.episode_number],
    )

    def __repr__(self) -> str:
        return f"<Series {self.name}>"


class SeriesEpisode(Base, TimestampMixin):
    """One episode of a series."""

    __tablename__ = "series_episodes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    series_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("series.id", ondelete="CASCADE"), nullable=False, index=True
    )

    season_number: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    episode_number: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    plot: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    cover_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    duration: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    container_extension: Mapped[Optional[str]] = mapped_column(String(10), nullable=True, default="mp4")
    stream_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    series: Mapped[Series] = relationship(back_populates="episodes")

    @property
    def display_name(self) -> str:
        """``Series S01E02`` as used in playlists."""
        return f"{self.series.name} S{self.season_number:02d}E{self.episode_number:02d}"

    def __repr__(self) -> str:
        return f"<SeriesEpisode {self.series_id} S{self.season_number}E{self.episode_number}>"
