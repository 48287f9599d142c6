"""
Streaming user model.

Streaming users are the subscribers that authenticate against the
Xtream API and the M3U playlist (username/password) or the Stalker
portal (MAC address).
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from streampanel.database.models.base import Base, TimestampMixin, generate_uuid
from streampanel.utils.timeutils import utcnow


class StreamingUser(Base, TimestampMixin):
    """Subscriber account."""

    __tablename__ = "streaming_users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)

    # Credentials (plaintext, compared exactly)
    username: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password: Mapped[str] = mapped_column(String(255), nullable=False)

    # online / offline / active / disabled
    status: Mapped[str] = mapped_column(String(20), default="offline", nullable=False)
    expiry_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    max_connections: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    connections: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Stalker identity, stored in whatever notation the admin typed
    mac_address: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    # Bouquet names this user may watch; empty means unrestricted
    bouquets: Mapped[Optional[list[str]]] = mapped_column(JSON, nullable=True)

    last_active: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return self.expiry_date <= (now or utcnow())

    @property
    def bouquet_filter(self) -> list[str]:
        return [b for b in (self.bouquets or []) if b]

    def __repr__(self) -> str:
        return f"<StreamingUser {self.username}>"


def normalized_mac_column():
    """SQL expression for ``mac_address`` with separators removed and upper-cased."""
    return func.upper(
        func.replace(func.replace(StreamingUser.mac_address, ":", ""), "-", "")
    )
