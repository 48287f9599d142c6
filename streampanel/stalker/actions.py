"""
Stalker/Ministra portal actions.

Handlers are keyed by ``(type, action)``. Namespaces that answer every
action the same way (``epg``, ``watchdog``, ...) are registered in
``TYPE_HANDLERS``. Anything else gets the handshake payload, which set-top
boxes tolerate.
"""

import logging
import re
import secrets
import string
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from functools import cached_property
from typing import Any, Callable, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from streampanel.auth import find_user_by_mac
from streampanel.config import get_config
from streampanel.database.models import (
    PLAYABLE_STATUSES,
    EPGChannel,
    EPGProgram,
    Series,
    SeriesCategory,
    SeriesEpisode,
    Stream,
    StreamingUser,
    VodCategory,
    VodContent,
)
from streampanel.panel_settings import PanelSettings
from streampanel.utils.timeutils import unix_seconds, utcnow
from streampanel.xtream.categories import LiveCategoryIndex

logger = logging.getLogger(__name__)

TOKEN_ALPHABET = string.ascii_letters + string.digits
TOKEN_LENGTH = 32

CMD_ID_PATTERN = re.compile(r"/(?:live|movie|series|vod|ch)/([^/?&\s]+)")

DEFAULT_EPG_PERIOD_HOURS = 24
DEFAULT_SHORT_EPG_SIZE = 4


@dataclass
class StalkerContext:
    """One portal request: the device MAC, query parameters and settings."""

    db: Session
    mac: str
    settings: PanelSettings
    params: dict[str, str] = field(default_factory=dict)
    now: datetime = field(default_factory=utcnow)

    def param(self, *names: str) -> Optional[str]:
        for name in names:
            value = self.params.get(name)
            if value:
                return value
        return None

    def int_param(self, name: str, default: int) -> int:
        try:
            value = int(self.params.get(name) or default)
        except ValueError:
            return default
        return value if value > 0 else default

    @cached_property
    def device(self) -> Optional[StreamingUser]:
        """User registered for this MAC, expired or not."""
        return find_user_by_mac(self.db, self.mac)

    @property
    def user(self) -> Optional[StreamingUser]:
        """User registered for this MAC when the subscription is still valid."""
        device = self.device
        if device is None or device.is_expired(self.now):
            return None
        return device

    @cached_property
    def tz(self) -> ZoneInfo | timezone:
        try:
            return ZoneInfo(self.settings.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"[Stalker] Unknown timezone {self.settings.timezone!r}, using UTC")
            return timezone.utc

    def local(self, value: datetime) -> datetime:
        return value.replace(tzinfo=timezone.utc).astimezone(self.tz)


def generate_token() -> str:
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(TOKEN_LENGTH))


def extract_cmd_id(cmd: Optional[str]) -> str:
    """Pull the catalog id out of a ``cmd`` such as ``ffrt http://localhost/live/{id}``."""
    if not cmd:
        return ""
    match = CMD_ID_PATTERN.search(cmd)
    if match:
        return match.group(1)
    return cmd.strip().rstrip("/").split("/")[-1].split("?")[0]


def category_alias(name: str) -> str:
    return "_".join(name.lower().split())


def _page(data: list[dict[str, Any]], total: int, per_page: int, page: int) -> dict:
    return {
        "data": data,
        "total_items": total,
        "max_page_items": per_page,
        "cur_page": page,
        "selected_item": 0,
    }


def _empty_page(ctx: StalkerContext) -> dict:
    per_page = ctx.int_param("cnt", get_config().stalker.page_size)
    return _page([], 0, per_page, ctx.int_param("p", 1))


def _paginate(ctx: StalkerContext, stmt, builder: Callable[[Any, int], dict]) -> dict:
    page = ctx.int_param("p", 1)
    per_page = ctx.int_param("cnt", get_config().stalker.page_size)
    offset = (page - 1) * per_page

    total = ctx.db.scalar(select(func.count()).select_from(stmt.order_by(None).subquery())) or 0
    rows = ctx.db.scalars(stmt.offset(offset).limit(per_page)).unique().all()
    data = [builder(row, offset + idx) for idx, row in enumerate(rows)]
    return _page(data, total, per_page, page)


def _genres(rows: list[tuple[str, str]]) -> list[dict[str, Any]]:
    return [
        {"id": str(category_id), "title": name, "alias": category_alias(name), "number": idx + 1}
        for idx, (category_id, name) in enumerate(rows)
    ]


# ---------------------------------------------------------------------------
# stb
# ---------------------------------------------------------------------------


def handshake(ctx: StalkerContext) -> dict:
    return {"token": generate_token(), "random": secrets.token_hex(20)}


def get_profile(ctx: StalkerContext) -> dict:
    """Profile for the device; unknown and expired devices get ``status: 0``."""
    device = ctx.device
    if device is None:
        logger.info(f"[Stalker] MAC not found: {ctx.mac or '(none)'}")
        return {"id": 0, "name": "Guest", "mac": ctx.mac, "status": 0}

    if device.is_expired(ctx.now):
        logger.info(f"[Stalker] Subscription expired for {device.username}")
        return {
            "id": device.id,
            "name": device.username,
            "mac": ctx.mac,
            "status": 0,
            "exp_date": unix_seconds(device.expiry_date),
            "msg": "Subscription expired",
        }

    device.last_active = ctx.now
    ctx.db.commit()

    config = get_config()
    return {
        "id": device.id,
        "name": device.username,
        "mac": ctx.mac,
        "status": 1,
        "exp_date": unix_seconds(device.expiry_date),
        "phone": "",
        "max_connections": device.max_connections or 1,
        "tariff_plan": config.stalker.tariff_plan,
        "portal_name": config.stalker.portal_name,
        "timezone": ctx.settings.timezone,
    }


# ---------------------------------------------------------------------------
# itv
# ---------------------------------------------------------------------------


def itv_get_genres(ctx: StalkerContext) -> list[dict[str, Any]]:
    if ctx.user is None:
        return []
    index = LiveCategoryIndex.build(ctx.db)
    genres = _genres([(e["category_id"], e["category_name"]) for e in index.entries])
    return [{"id": "*", "title": "All", "alias": "all", "number": 0}] + genres


def _channel_statement(ctx: StalkerContext, user: StreamingUser, index: LiveCategoryIndex):
    stmt = (
        select(Stream)
        .where(Stream.status.in_(PLAYABLE_STATUSES))
        .order_by(Stream.channel_number, Stream.name)
    )
    genre = ctx.param("genre")
    if genre and genre != "*":
        stmt = stmt.where(Stream.category == index.name_for(genre))
    if user.bouquet_filter:
        stmt = stmt.where(Stream.bouquet.in_(user.bouquet_filter))
    return stmt


def itv_get_channels(ctx: StalkerContext) -> dict:
    user = ctx.user
    if user is None:
        return _empty_page(ctx)

    index = LiveCategoryIndex.build(ctx.db)

    def build(stream: Stream, position: int) -> dict:
        return {
            "id": str(stream.id),
            "name": stream.name,
            "number": str(stream.channel_number or position + 1),
            "logo": stream.stream_icon or "",
            "cmd": f"ffrt http://localhost/live/{stream.id}",
            "tv_genre_id": index.id_for(stream.category) if stream.category else "*",
            "xmltv_id": stream.epg_channel_id or "",
            "use_http_tmp_link": 1,
            "censored": 0,
            "archive": 1 if stream.dvr_enabled else 0,
        }

    return _paginate(ctx, _channel_statement(ctx, user, index), build)


def _link_allowed(ctx: StalkerContext, stream: Optional[Stream] = None) -> bool:
    if not get_config().stalker.enforce_link_authorization:
        return True
    user = ctx.user
    if user is None:
        return False
    if stream is not None and user.bouquet_filter:
        return stream.bouquet in user.bouquet_filter
    return True


def itv_create_link(ctx: StalkerContext) -> dict:
    stream_id = extract_cmd_id(ctx.param("cmd", "id"))
    stream = ctx.db.get(Stream, stream_id) if stream_id else None
    if stream is None:
        logger.info(f"[Stalker] Channel not found: {stream_id}")
        return {"id": stream_id, "cmd": ""}
    if not _link_allowed(ctx, stream):
        logger.info(f"[Stalker] Link refused for {ctx.mac} -> {stream.name}")
        return {"id": stream_id, "cmd": ""}
    return {"id": str(stream.id), "cmd": stream.input_url}


# ---------------------------------------------------------------------------
# epg
# ---------------------------------------------------------------------------


def _epg_rows(ctx: StalkerContext, stream_id: str, programs: list[EPGProgram]) -> list[dict]:
    rows = []
    for program in programs:
        start = ctx.local(program.start_time)
        end = ctx.local(program.end_time)
        rows.append(
            {
                "id": str(program.id),
                "ch_id": stream_id,
                "name": program.title,
                "descr": program.description or "",
                "time": start.strftime("%Y-%m-%d %H:%M:%S"),
                "time_to": end.strftime("%Y-%m-%d %H:%M:%S"),
                "t_time": start.strftime("%H:%M"),
                "t_time_to": end.strftime("%H:%M"),
                "start_timestamp": unix_seconds(program.start_time),
                "stop_timestamp": unix_seconds(program.end_time),
                "duration": int((program.end_time - program.start_time).total_seconds()),
            }
        )
    return rows


def _programs_for_stream(ctx: StalkerContext, stream_id: str):
    return (
        select(EPGProgram)
        .join(EPGChannel, EPGProgram.channel_id == EPGChannel.id)
        .where(EPGChannel.stream_id == stream_id, EPGProgram.end_time >= ctx.now)
        .order_by(EPGProgram.start_time)
    )


def epg_get_simple_data_table(ctx: StalkerContext) -> list[dict]:
    """Programmes of ``ch_id`` overlapping the next ``period`` hours."""
    stream_id = ctx.param("ch_id", "id")
    if not stream_id:
        return []
    period = ctx.int_param("period", DEFAULT_EPG_PERIOD_HOURS)
    stmt = _programs_for_stream(ctx, stream_id).where(
        EPGProgram.start_time <= ctx.now + timedelta(hours=period)
    )
    return _epg_rows(ctx, stream_id, list(ctx.db.scalars(stmt)))


def itv_get_short_epg(ctx: StalkerContext) -> list[dict]:
    stream_id = ctx.param("ch_id", "id")
    if not stream_id:
        return []
    size = ctx.int_param("size", DEFAULT_SHORT_EPG_SIZE)
    stmt = _programs_for_stream(ctx, stream_id).limit(size)
    return _epg_rows(ctx, stream_id, list(ctx.db.scalars(stmt)))


# ---------------------------------------------------------------------------
# vod / series
# ---------------------------------------------------------------------------


def _year(release_date: Optional[str]) -> str:
    return release_date.split("-")[0] if release_date else ""


def vod_get_categories(ctx: StalkerContext) -> list[dict[str, Any]]:
    if ctx.user is None:
        return []
    rows = ctx.db.scalars(select(VodCategory).order_by(VodCategory.sort_order, VodCategory.name))
    return _genres([(row.id, row.name) for row in rows])


def vod_get_ordered_list(ctx: StalkerContext) -> dict:
    if ctx.user is None:
        return _empty_page(ctx)

    stmt = (
        select(VodContent)
        .where(VodContent.status == "active")
        .order_by(VodContent.created_at.desc())
    )
    category = ctx.param("category")
    if category and category != "*":
        stmt = stmt.where(VodContent.category_id == category)

    def build(movie: VodContent, position: int) -> dict:
        return {
            "id": str(movie.id),
            "name": movie.name,
            "o_name": movie.name,
            "description": movie.plot or "",
            "director": movie.director or "",
            "actors": movie.cast_names or "",
            "year": _year(movie.release_date),
            "rating": movie.rating or 0,
            "genre_str": movie.genre or "",
            "cover": movie.cover_url or "",
            "cmd": f"ffrt http://localhost/movie/{movie.id}",
            "time": movie.duration or 0,
        }

    return _paginate(ctx, stmt, build)


def vod_create_link(ctx: StalkerContext) -> dict:
    vod_id = extract_cmd_id(ctx.param("cmd", "id"))
    movie = ctx.db.get(VodContent, vod_id) if vod_id else None
    if movie is None or not _link_allowed(ctx):
        return {"id": vod_id, "cmd": ""}
    return {"id": str(movie.id), "cmd": movie.stream_url or ""}


def series_get_categories(ctx: StalkerContext) -> list[dict[str, Any]]:
    if ctx.user is None:
        return []
    rows = ctx.db.scalars(
        select(SeriesCategory).order_by(SeriesCategory.sort_order, SeriesCategory.name)
    )
    return _genres([(row.id, row.name) for row in rows])


def _episode_list(ctx: StalkerContext, series_id: str) -> dict:
    stmt = (
        select(SeriesEpisode)
        .where(SeriesEpisode.series_id == series_id)
        .order_by(SeriesEpisode.season_number, SeriesEpisode.episode_number)
    )

    def build(episode: SeriesEpisode, position: int) -> dict:
        return {
            "id": str(episode.id),
            "name": episode.title or episode.display_name,
            "series_id": str(episode.series_id),
            "season": episode.season_number,
            "episode": episode.episode_number,
            "description": episode.plot or "",
            "cover": episode.cover_url or "",
            "cmd": f"ffrt http://localhost/series/{episode.id}",
            "time": episode.duration or 0,
        }

    return _paginate(ctx, stmt, build)


def series_get_ordered_list(ctx: StalkerContext) -> dict:
    """Series page, or the episodes of ``movie_id`` when one is given."""
    if ctx.user is None:
        return _empty_page(ctx)

    series_id = ctx.param("movie_id")
    if series_id:
        return _episode_list(ctx, series_id)

    stmt = select(Series).where(Series.status == "active").order_by(Series.created_at.desc())
    category = ctx.param("category")
    if category and category != "*":
        stmt = stmt.where(Series.category_id == category)

    def build(series: Series, position: int) -> dict:
        return {
            "id": str(series.id),
            "name": series.name,
            "o_name": series.name,
            "description": series.plot or "",
            "director": series.director or "",
            "actors": series.cast_names or "",
            "year": _year(series.release_date),
            "rating": series.rating or 0,
            "genre_str": series.genre or "",
            "cover": series.cover_url or "",
            "is_series": 1,
        }

    return _paginate(ctx, stmt, build)


def series_create_link(ctx: StalkerContext) -> dict:
    episode_id = extract_cmd_id(ctx.param("cmd", "id"))
    episode = ctx.db.get(SeriesEpisode, episode_id) if episode_id else None
    if episode is None or not _link_allowed(ctx):
        return {"id": episode_id, "cmd": ""}
    return {"id": str(episode.id), "cmd": episode.stream_url or ""}


def empty(ctx: StalkerContext) -> dict:
    return {}


Handler = Callable[[StalkerContext], Any]

HANDLERS: dict[tuple[str, str], Handler] = {
    ("stb", "handshake"): handshake,
    ("stb", "get_profile"): get_profile,
    ("stb", "do_auth"): get_profile,
    ("itv", "get_genres"): itv_get_genres,
    ("itv", "get_categories"): itv_get_genres,
    ("itv", "get_all_channels"): itv_get_channels,
    ("itv", "get_ordered_list"): itv_get_channels,
    ("itv", "create_link"): itv_create_link,
    ("itv", "get_short_epg"): itv_get_short_epg,
    ("vod", "get_categories"): vod_get_categories,
    ("vod", "get_genres"): vod_get_categories,
    ("vod", "get_ordered_list"): vod_get_ordered_list,
    ("vod", "create_link"): vod_create_link,
    ("series", "get_categories"): series_get_categories,
    ("series", "get_genres"): series_get_categories,
    ("series", "get_ordered_list"): series_get_ordered_list,
    ("series", "create_link"): series_create_link,
}

TYPE_HANDLERS: dict[str, Handler] = {
    "epg": epg_get_simple_data_table,
    "watchdog": empty,
    "account_info": empty,
    "main_menu": empty,
}


def resolve_handler(portal_type: str, action: str) -> Handler:
    handler = HANDLERS.get((portal_type, action)) or TYPE_HANDLERS.get(portal_type)
    if handler is None:
        logger.debug(f"[Stalker] Unhandled type={portal_type!r} action={action!r}, answering handshake")
        return handshake
    return handler


def dispatch(portal_type: str, action: str, ctx: StalkerContext) -> dict:
    """Run the handler and wrap its result in the ``{"js": ...}`` envelope."""
    return {"js": resolve_handler(portal_type, action)(ctx)}
