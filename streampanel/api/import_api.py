"""API endpoints for importing channels from M3U playlists and guide data from XMLTV"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from ..config import get_config
from ..database import get_db
from ..exceptions import ImportInputError, UpstreamFetchError
from ..importers import M3UImporter, XMLTVImporter

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Import"])


class M3UImportRequest(BaseModel):
    m3u_url: Optional[str] = None
    m3u_content: Optional[str] = None
    default_category: Optional[str] = None
    overwrite_existing: bool = False


class EPGImportRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: Optional[str] = None
    source_id: Optional[str] = Field(default=None, alias="sourceId")


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


@router.post("/m3u-import")
async def import_m3u(request: M3UImportRequest, db: Session = Depends(get_db)):
    """
    Import streams from M3U text or a playlist URL.

    Inline content wins over the URL when both are given. New streams are
    created inactive; existing ones (same name or source URL) are skipped
    unless ``overwrite_existing`` is set.
    """
    importer = M3UImporter(db)
    max_errors = get_config().imports.max_reported_errors

    try:
        content = request.m3u_content
        if not content and request.m3u_url:
            content = await importer.fetch_playlist(request.m3u_url)

        if not content:
            return _error("No M3U content provided", 400)

        result = await asyncio.to_thread(
            importer.import_content,
            content,
            default_category=request.default_category,
            overwrite_existing=request.overwrite_existing,
        )
        return result.to_dict(max_errors=max_errors)

    except ImportInputError as e:
        return _error(str(e), 400)
    except UpstreamFetchError as e:
        logger.error(f"[M3U Import] {e.message}")
        return _error(f"Failed to fetch M3U: {e.message}", 500)
    except Exception as e:
        logger.error(f"[M3U Import] Import failed: {e}", exc_info=True)
        return _error(str(e), 500)


@router.post("/epg-import")
async def import_epg(request: EPGImportRequest, db: Session = Depends(get_db)):
    """Import an XMLTV guide (optionally gzipped) for the streams it matches."""
    if not request.url:
        return _error("EPG URL is required", 400)

    importer = XMLTVImporter(db)
    max_errors = get_config().imports.max_reported_errors

    try:
        document = await importer.fetch_document(request.url)
        result = await asyncio.to_thread(
            importer.import_document, document, source_id=request.source_id
        )
        return result.to_dict(max_errors=max_errors)

    except UpstreamFetchError as e:
        logger.error(f"[EPG Import] {e.message}")
        return _error(f"Failed to fetch EPG: {e.message}", 500)
    except ImportInputError as e:
        return _error(str(e), 400)
    except Exception as e:
        logger.error(f"[EPG Import] Import failed: {e}", exc_info=True)
        return _error(str(e), 500)
