"""
Xtream-style playback URLs.

Players build ``/live``, ``/movie`` and ``/series`` URLs from the
``server_info`` block; these routes check the subscriber and redirect to
where the content is actually served.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse
from sqlalchemy.orm import Session

from ..auth import AccountStatus, check_account
from ..database import InputType, SeriesEpisode, Stream, VodContent, get_db
from ..panel_settings import load_panel_settings
from ..streaming import StreamURLResolver

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Playback"])


def _split_file(stream_file: str) -> tuple[str, Optional[str]]:
    """``{id}.{ext}`` -> ``(id, ext)``"""
    if "." in stream_file:
        item_id, ext = stream_file.rsplit(".", 1)
        return item_id, ext.lower()
    return stream_file, None


def _resolver(request: Request, db: Session) -> StreamURLResolver:
    return StreamURLResolver(
        load_panel_settings(db), request.url.scheme, request.url.hostname or "localhost"
    )


def _check(db: Session, username: str, password: str) -> Optional[PlainTextResponse]:
    status, _ = check_account(db, username, password)
    if status is AccountStatus.INVALID:
        logger.info(f"[Playback] Auth failed for {username}")
        return PlainTextResponse("Invalid credentials", status_code=401)
    if status is AccountStatus.EXPIRED:
        logger.info(f"[Playback] Account expired for {username}")
        return PlainTextResponse("Account expired", status_code=403)
    return None


@router.get("/live/{username}/{password}/{stream_file}")
def play_live(
    username: str,
    password: str,
    stream_file: str,
    request: Request,
    db: Session = Depends(get_db),
):
    failure = _check(db, username, password)
    if failure is not None:
        return failure

    stream_id, ext = _split_file(stream_file)
    stream = db.get(Stream, stream_id)
    if stream is None or not stream.is_playable or not stream.input_url:
        return JSONResponse({"error": "Stream not found"}, status_code=404)

    if stream.input_type == InputType.HLS.value:
        target = _resolver(request, db).live_url(username, password, stream, ext or "m3u8")
    else:
        target = stream.input_url

    logger.info(f"[Playback] {username} -> live {stream.name}")
    return RedirectResponse(target, status_code=302)


@router.get("/movie/{username}/{password}/{stream_file}")
def play_movie(username: str, password: str, stream_file: str, db: Session = Depends(get_db)):
    failure = _check(db, username, password)
    if failure is not None:
        return failure

    vod_id, _ = _split_file(stream_file)
    vod = db.get(VodContent, vod_id)
    if vod is None or not vod.stream_url:
        return JSONResponse({"error": "Movie not found"}, status_code=404)

    logger.info(f"[Playback] {username} -> movie {vod.name}")
    return RedirectResponse(vod.stream_url, status_code=302)


@router.get("/series/{username}/{password}/{stream_file}")
def play_episode(username: str, password: str, stream_file: str, db: Session = Depends(get_db)):
    failure = _check(db, username, password)
    if failure is not None:
        return failure

    episode_id, _ = _split_file(stream_file)
    episode = db.get(SeriesEpisode, episode_id)
    if episode is None or not episode.stream_url:
        return JSONResponse({"error": "Episode not found"}, status_code=404)

    logger.info(f"[Playback] {username} -> episode {episode.display_name}")
    return RedirectResponse(episode.stream_url, status_code=302)


@router.get("/streams/{stream_id}/preview-url")
def preview_url(stream_id: str, request: Request, db: Session = Depends(get_db)):
    """URL the panel's test player should load for a stream."""
    stream = db.get(Stream, stream_id)
    if stream is None:
        return JSONResponse({"error": "Stream not found"}, status_code=404)

    url = _resolver(request, db).resolve(stream.name, stream.input_type, stream.input_url)
    return {"stream_id": stream.id, "name": stream.name, "url": url}
