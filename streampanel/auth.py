"""
Subscriber identity lookups shared by the protocol adapters.

Xtream, the M3U playlist and the proxy identify users by username and
password; the Stalker portal identifies devices by MAC address.
"""

import logging
import re
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from streampanel.database.models import StreamingUser, normalized_mac_column
from streampanel.utils.timeutils import utcnow

logger = logging.getLogger(__name__)

_MAC_SEPARATORS = re.compile(r"[:-]")


def normalize_mac(mac: Optional[str]) -> str:
    """Strip ``:``/``-`` separators and upper-case a MAC address."""
    if not mac:
        return ""
    return _MAC_SEPARATORS.sub("", mac.strip()).upper()


def find_user_by_credentials(
    db: Session, username: Optional[str], password: Optional[str]
) -> Optional[StreamingUser]:
    """Exact username/password match, ignoring expiry."""
    if not username or not password:
        return None
    return db.scalars(
        select(StreamingUser)
        .where(StreamingUser.username == username, StreamingUser.password == password)
        .limit(1)
    ).first()


def authenticate_user(
    db: Session,
    username: Optional[str],
    password: Optional[str],
    now: Optional[datetime] = None,
) -> Optional[StreamingUser]:
    """
    Return the user only when credentials match exactly and the account
    has not expired. Callers cannot tell the two failures apart.
    """
    user = find_user_by_credentials(db, username, password)
    if user is None:
        logger.info(f"Auth failed for {username}")
        return None
    if user.is_expired(now or utcnow()):
        logger.info(f"User {username} expired")
        return None
    return user


def find_user_by_mac(db: Session, mac: Optional[str]) -> Optional[StreamingUser]:
    """Look a device up by MAC, comparing normalized forms on both sides."""
    key = normalize_mac(mac)
    if not key:
        return None
    return db.scalars(
        select(StreamingUser).where(normalized_mac_column() == key).limit(1)
    ).first()


class AccountStatus(str, Enum):
    OK = "ok"
    INVALID = "invalid"
    EXPIRED = "expired"


def check_account(
    db: Session,
    username: Optional[str],
    password: Optional[str],
    now: Optional[datetime] = None,
) -> tuple[AccountStatus, Optional[StreamingUser]]:
    """
    Like ``authenticate_user`` but tells bad credentials and expiry apart,
    for the playlist and playback routes that answer 401 and 403.
    """
    user = find_user_by_credentials(db, username, password)
    if user is None:
        return AccountStatus.INVALID, None
    if user.is_expired(now or utcnow()):
        return AccountStatus.EXPIRED, user
    return AccountStatus.OK, user
