"""M3U playlist generation for subscribers"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse, Response
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from ..auth import AccountStatus, check_account
from ..database import PLAYABLE_STATUSES, Series, Stream, VodContent, get_db
from ..importers import M3UEntry, emit_m3u
from ..panel_settings import load_panel_settings
from ..streaming import StreamURLResolver
from ..xtream.actions import default_epg_channel_id

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Playlist"])


def build_playlist_entries(
    db: Session,
    resolver: StreamURLResolver,
    username: str,
    password: str,
    output: str = "m3u8",
) -> list[M3UEntry]:
    """Live channels grouped by category, then movies, then series episodes."""
    entries: list[M3UEntry] = []

    streams = db.scalars(
        select(Stream)
        .where(Stream.status.in_(PLAYABLE_STATUSES))
        .order_by(Stream.category, Stream.channel_number, Stream.name)
    ).all()

    groups: dict[str, list[Stream]] = {}
    for stream in streams:
        groups.setdefault(stream.category or "Uncategorized", []).append(stream)

    for group, members in groups.items():
        for stream in members:
            entries.append(
                M3UEntry(
                    name=stream.name,
                    url=resolver.live_url(username, password, stream, output),
                    tvg_id=stream.epg_channel_id or default_epg_channel_id(stream.name),
                    tvg_name=stream.name,
                    tvg_logo=stream.stream_icon or "",
                    group_title=group,
                )
            )

    vods = db.scalars(
        select(VodContent)
        .where(VodContent.status == "active")
        .order_by(VodContent.created_at.desc())
    ).unique()
    for vod in vods:
        entries.append(
            M3UEntry(
                name=vod.name,
                url=resolver.movie_url(username, password, vod),
                tvg_name=vod.name,
                tvg_logo=vod.cover_url or "",
                group_title=vod.category.name if vod.category else "Movies",
            )
        )

    series_list = db.scalars(
        select(Series)
        .options(selectinload(Series.episodes))
        .where(Series.status == "active")
        .order_by(Series.name)
    ).unique()
    for series in series_list:
        group = series.category.name if series.category else "Series"
        for episode in series.episodes:
            name = episode.display_name
            entries.append(
                M3UEntry(
                    name=name,
                    url=resolver.episode_url(username, password, episode),
                    tvg_name=name,
                    tvg_logo=episode.cover_url or series.cover_url or "",
                    group_title=group,
                )
            )

    logger.info(
        f"[M3U Playlist] Generated {len(streams)} live, "
        f"{len(entries) - len(streams)} VOD/episode entries"
    )
    return entries


@router.get("/m3u-playlist")
@router.get("/get.php")
def get_playlist(
    request: Request,
    username: Optional[str] = None,
    password: Optional[str] = None,
    type: str = "m3u_plus",
    output: str = "m3u8",
    db: Session = Depends(get_db),
):
    """Full subscriber playlist; ``type=m3u`` drops the EXTINF attributes."""
    logger.info(f"[M3U Playlist] Generating for {username}, type: {type}, output: {output}")

    status, user = check_account(db, username, password)
    if status is AccountStatus.INVALID:
        logger.info(f"[M3U Playlist] Auth failed for {username}")
        return PlainTextResponse("Invalid credentials", status_code=401)
    if status is AccountStatus.EXPIRED:
        return PlainTextResponse("Account expired", status_code=403)

    resolver = StreamURLResolver(
        load_panel_settings(db), request.url.scheme, request.url.hostname or "localhost"
    )
    entries = build_playlist_entries(db, resolver, user.username, user.password, output)
    content = emit_m3u(entries, extended=(type != "m3u"))

    return Response(
        content=content,
        media_type="audio/x-mpegurl",
        headers={"Content-Disposition": f'attachment; filename="{user.username}_playlist.m3u"'},
    )
