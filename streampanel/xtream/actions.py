"""
Xtream Codes ``player_api.php`` actions.

Each action is a plain function of an :class:`XtreamContext` returning the
JSON-ready payload a player expects. ``ACTIONS`` maps the ``action`` query
parameter onto its handler; anything not listed falls back to the user-info
envelope.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

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
from streampanel.utils.timeutils import iso_utc, sql_timestamp, unix_seconds, unix_string, utcnow
from streampanel.xtream.categories import LiveCategoryIndex

logger = logging.getLogger(__name__)

DEFAULT_EPG_LIMIT = 2


@dataclass
class XtreamContext:
    """Everything an action needs for one request."""

    db: Session
    user: StreamingUser
    settings: PanelSettings
    request_host: str
    params: dict[str, str] = field(default_factory=dict)
    now: datetime = field(default_factory=utcnow)

    def param(self, name: str) -> Optional[str]:
        value = self.params.get(name)
        return value or None


def format_number(value: Optional[float], default: str = "0") -> str:
    """Render a rating the way players expect: ``8`` rather than ``8.0``."""
    if value is None:
        return default
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def rating_5based(value: Optional[float]) -> str:
    if not value:
        return "0"
    return f"{value / 2:.1f}"


def format_duration(minutes: Optional[int]) -> str:
    """Runtime in minutes as ``HH:MM:00``."""
    if not minutes:
        return ""
    return f"{minutes // 60:02d}:{minutes % 60:02d}:00"


def default_epg_channel_id(name: str) -> str:
    return "".join(name.lower().split())


def _categories(rows) -> list[dict[str, Any]]:
    return [
        {"category_id": str(row.id), "category_name": row.name, "parent_id": 0}
        for row in rows
    ]


# ---------------------------------------------------------------------------
# Account
# ---------------------------------------------------------------------------


def get_user_info(ctx: XtreamContext) -> dict[str, Any]:
    config = get_config()
    user = ctx.user
    settings = ctx.settings

    return {
        "user_info": {
            "username": user.username,
            "password": user.password,
            "message": config.xtream.message,
            "auth": 1,
            "status": "Disabled" if user.status == "disabled" else "Active",
            "exp_date": unix_string(user.expiry_date),
            "is_trial": "0",
            "active_cons": str(user.connections or 0),
            "created_at": unix_string(user.created_at or ctx.now),
            "max_connections": str(user.max_connections),
            "allowed_output_formats": list(config.xtream.allowed_output_formats),
        },
        "server_info": {
            "url": settings.public_host(ctx.request_host),
            "port": str(settings.http_port),
            "https_port": str(settings.https_port),
            "server_protocol": settings.protocol,
            "rtmp_port": str(settings.rtmp_port),
            "timezone": settings.timezone,
            "timestamp_now": unix_seconds(ctx.now),
            "time_now": iso_utc(ctx.now),
        },
    }


# ---------------------------------------------------------------------------
# Live
# ---------------------------------------------------------------------------


def get_live_categories(ctx: XtreamContext) -> list[dict[str, Any]]:
    return LiveCategoryIndex.build(ctx.db).entries


def get_live_streams(ctx: XtreamContext) -> list[dict[str, Any]]:
    index = LiveCategoryIndex.build(ctx.db)

    stmt = (
        select(Stream)
        .where(Stream.status.in_(PLAYABLE_STATUSES))
        .order_by(Stream.channel_number, Stream.name)
    )
    category_id = ctx.param("category_id")
    if category_id:
        stmt = stmt.where(Stream.category == index.name_for(category_id))

    streams = ctx.db.scalars(stmt).all()
    return [
        {
            "num": stream.channel_number or idx + 1,
            "name": stream.name,
            "stream_type": "live",
            "stream_id": str(stream.id),
            "stream_icon": stream.stream_icon or "",
            "epg_channel_id": stream.epg_channel_id or default_epg_channel_id(stream.name),
            "added": unix_string(stream.created_at),
            "category_id": index.id_for(stream.category),
            "custom_sid": "",
            "tv_archive": 1 if stream.dvr_enabled else 0,
            "direct_source": "",
            "tv_archive_duration": stream.dvr_duration or 0,
        }
        for idx, stream in enumerate(streams)
    ]


# ---------------------------------------------------------------------------
# VOD
# ---------------------------------------------------------------------------


def get_vod_categories(ctx: XtreamContext) -> list[dict[str, Any]]:
    rows = ctx.db.scalars(
        select(VodCategory).order_by(VodCategory.sort_order, VodCategory.name)
    )
    return _categories(rows)


def get_vod_streams(ctx: XtreamContext) -> list[dict[str, Any]]:
    stmt = (
        select(VodContent)
        .where(VodContent.status == "active")
        .order_by(VodContent.created_at.desc())
    )
    category_id = ctx.param("category_id")
    if category_id:
        stmt = stmt.where(VodContent.category_id == category_id)

    return [
        {
            "num": idx + 1,
            "name": vod.name,
            "stream_type": "movie",
            "stream_id": str(vod.id),
            "stream_icon": vod.cover_url or "",
            "rating": format_number(vod.rating),
            "rating_5based": rating_5based(vod.rating),
            "added": unix_string(vod.created_at),
            "category_id": vod.category_id or "",
            "container_extension": vod.container_extension or "mp4",
            "custom_sid": "",
            "direct_source": "",
        }
        for idx, vod in enumerate(ctx.db.scalars(stmt).unique())
    ]


def get_vod_info(ctx: XtreamContext) -> dict[str, Any]:
    vod_id = ctx.param("vod_id")
    vod = ctx.db.get(VodContent, vod_id) if vod_id else None
    if vod is None:
        return {"info": {}, "movie_data": {}}

    return {
        "info": {
            "movie_image": vod.cover_url or "",
            "tmdb_id": str(vod.tmdb_id) if vod.tmdb_id is not None else "",
            "name": vod.name,
            "o_name": vod.name,
            "plot": vod.plot or "",
            "cast": vod.cast_names or "",
            "director": vod.director or "",
            "genre": vod.genre or "",
            "releasedate": vod.release_date or "",
            "duration_secs": (vod.duration or 0) * 60,
            "duration": format_duration(vod.duration),
            "video": {},
            "audio": {},
            "bitrate": 0,
            "rating": format_number(vod.rating, default=""),
        },
        "movie_data": {
            "stream_id": str(vod.id),
            "name": vod.name,
            "added": unix_string(vod.created_at),
            "category_id": vod.category_id or "",
            "container_extension": vod.container_extension or "mp4",
            "custom_sid": "",
            "direct_source": "",
        },
    }


# ---------------------------------------------------------------------------
# Series
# ---------------------------------------------------------------------------


def get_series_categories(ctx: XtreamContext) -> list[dict[str, Any]]:
    rows = ctx.db.scalars(
        select(SeriesCategory).order_by(SeriesCategory.sort_order, SeriesCategory.name)
    )
    return _categories(rows)


def get_series(ctx: XtreamContext) -> list[dict[str, Any]]:
    stmt = (
        select(Series)
        .where(Series.status == "active")
        .order_by(Series.created_at.desc())
    )
    category_id = ctx.param("category_id")
    if category_id:
        stmt = stmt.where(Series.category_id == category_id)

    return [
        {
            "num": idx + 1,
            "name": series.name,
            "series_id": str(series.id),
            "cover": series.cover_url or "",
            "plot": series.plot or "",
            "cast": series.cast_names or "",
            "director": series.director or "",
            "genre": series.genre or "",
            "releaseDate": series.release_date or "",
            "rating": format_number(series.rating),
            "rating_5based": rating_5based(series.rating),
            "category_id": series.category_id or "",
            "tmdb": str(series.tmdb_id) if series.tmdb_id is not None else "",
        }
        for idx, series in enumerate(ctx.db.scalars(stmt).unique())
    ]


def _episode_payload(episode: SeriesEpisode, series: Series) -> dict[str, Any]:
    return {
        "id": str(episode.id),
        "episode_num": episode.episode_number,
        "title": episode.title or f"Episode {episode.episode_number}",
        "container_extension": episode.container_extension or "mp4",
        "info": {
            "movie_image": episode.cover_url or series.cover_url or "",
            "plot": episode.plot or "",
            "duration_secs": (episode.duration or 0) * 60,
            "duration": format_duration(episode.duration),
        },
        "custom_sid": "",
        "added": unix_string(episode.created_at),
        "season": episode.season_number,
        "direct_source": "",
    }


def get_series_info(ctx: XtreamContext) -> dict[str, Any]:
    series_id = ctx.param("series_id")
    series = ctx.db.get(Series, series_id) if series_id else None
    if series is None:
        return {"seasons": [], "info": {}, "episodes": {}}

    episodes: dict[str, list[dict[str, Any]]] = {}
    for episode in series.episodes:
        episodes.setdefault(str(episode.season_number), []).append(
            _episode_payload(episode, series)
        )

    seasons = [
        {
            "season_number": int(season),
            "name": f"Season {season}",
            "episode_count": len(items),
            "cover": series.cover_url or "",
        }
        for season, items in episodes.items()
    ]

    return {
        "seasons": seasons,
        "info": {
            "name": series.name,
            "cover": series.cover_url or "",
            "plot": series.plot or "",
            "cast": series.cast_names or "",
            "director": series.director or "",
            "genre": series.genre or "",
            "releaseDate": series.release_date or "",
            "rating": format_number(series.rating, default=""),
            "tmdb_id": str(series.tmdb_id) if series.tmdb_id is not None else "",
            "category_id": series.category_id or "",
        },
        "episodes": episodes,
    }


# ---------------------------------------------------------------------------
# EPG
# ---------------------------------------------------------------------------


def _epg_channel(ctx: XtreamContext) -> Optional[EPGChannel]:
    stream_id = ctx.param("stream_id")
    if not stream_id:
        return None
    return ctx.db.scalars(
        select(EPGChannel).where(EPGChannel.stream_id == stream_id).limit(1)
    ).first()


def _listing(program: EPGProgram, channel: EPGChannel, language: str) -> dict[str, Any]:
    return {
        "id": str(program.id),
        "epg_id": channel.epg_channel_id,
        "title": program.title,
        "lang": language,
        "start": sql_timestamp(program.start_time),
        "end": sql_timestamp(program.end_time),
        "description": program.description or "",
        "channel_id": channel.epg_channel_id,
        "start_timestamp": unix_string(program.start_time),
        "stop_timestamp": unix_string(program.end_time),
    }


def _parse_limit(value: Optional[str]) -> int:
    try:
        limit = int(value) if value else DEFAULT_EPG_LIMIT
    except ValueError:
        return DEFAULT_EPG_LIMIT
    return limit if limit > 0 else DEFAULT_EPG_LIMIT


def get_short_epg(ctx: XtreamContext) -> dict[str, Any]:
    """Current and upcoming programmes for ``stream_id``."""
    channel = _epg_channel(ctx)
    if channel is None:
        return {"epg_listings": []}

    programs = ctx.db.scalars(
        select(EPGProgram)
        .where(EPGProgram.channel_id == channel.id, EPGProgram.end_time >= ctx.now)
        .order_by(EPGProgram.start_time)
        .limit(_parse_limit(ctx.param("limit")))
    )
    language = get_config().xtream.epg_language
    return {"epg_listings": [_listing(p, channel, language) for p in programs]}


def get_simple_data_table(ctx: XtreamContext) -> dict[str, Any]:
    """Programmes starting within the next 24 hours for ``stream_id``."""
    channel = _epg_channel(ctx)
    if channel is None:
        return {"epg_listings": []}

    programs = ctx.db.scalars(
        select(EPGProgram)
        .where(
            EPGProgram.channel_id == channel.id,
            EPGProgram.start_time >= ctx.now,
            EPGProgram.start_time <= ctx.now + timedelta(hours=24),
        )
        .order_by(EPGProgram.start_time)
    )
    language = get_config().xtream.epg_language
    return {"epg_listings": [_listing(p, channel, language) for p in programs]}


ActionHandler = Callable[[XtreamContext], Any]

ACTIONS: dict[str, ActionHandler] = {
    "get_live_categories": get_live_categories,
    "get_live_streams": get_live_streams,
    "get_vod_categories": get_vod_categories,
    "get_vod_streams": get_vod_streams,
    "get_vod_info": get_vod_info,
    "get_series_categories": get_series_categories,
    "get_series": get_series,
    "get_series_info": get_series_info,
    "get_short_epg": get_short_epg,
    "get_simple_data_table": get_simple_data_table,
}


def dispatch(action: Optional[str], ctx: XtreamContext) -> Any:
    """Run ``action``; missing and unknown actions return the user-info envelope."""
    handler = ACTIONS.get(action or "", get_user_info)
    return handler(ctx)
