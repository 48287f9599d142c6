"""
Key/value panel settings.
"""

from typing import Optional

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from streampanel.database.models.base import Base, TimestampMixin


class PanelSetting(Base, TimestampMixin):
    __tablename__ = "panel_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    key: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<PanelSetting {self.key}={self.value!r}>"
