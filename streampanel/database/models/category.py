"""
Category models for live, VOD and series content.
"""

from typing import Optional

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from streampanel.database.models.base import Base, TimestampMixin, generate_uuid


class _CategoryColumns:
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    sort_order: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, default=0)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class LiveCategory(_CategoryColumns, Base, TimestampMixin):
    __tablename__ = "live_categories"


class VodCategory(_CategoryColumns, Base, TimestampMixin):
    __tablename__ = "vod_categories"


class SeriesCategory(_CategoryColumns, Base, TimestampMixin):
    __tablename__ = "series_categories"
