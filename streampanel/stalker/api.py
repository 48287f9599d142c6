"""Stalker/Ministra portal endpoints for MAG-style set-top boxes"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..database import get_db
from ..panel_settings import load_panel_settings
from ..utils.timeutils import utcnow
from .actions import StalkerContext, dispatch
from .identity import effective_type, extract_mac

logger = logging.getLogger(__name__)

stalker_router = APIRouter(tags=["Stalker Portal"])


def _handle(request: Request, db: Session) -> JSONResponse:
    params = dict(request.query_params)
    portal_type = effective_type(params, request.url.path)
    action = (params.get("action") or "").lower()
    mac = extract_mac(params, request.cookies, request.headers.get("authorization"))

    logger.info(f"[Stalker] type={portal_type} action={action} mac={mac or '-'}")

    try:
        ctx = StalkerContext(
            db=db,
            mac=mac,
            settings=load_panel_settings(db),
            params=params,
            now=utcnow(),
        )
        return JSONResponse(dispatch(portal_type, action, ctx))
    except Exception as e:
        logger.error(f"[Stalker] Error handling {portal_type}/{action}: {e}", exc_info=True)
        return JSONResponse({"js": {"error": str(e)}}, status_code=500)


@stalker_router.get("/stalker_portal/server/load.php")
def load_php(request: Request, db: Session = Depends(get_db)):
    """Main portal entry point; the namespace comes from ``type``."""
    return _handle(request, db)


@stalker_router.get("/{prefix:path}/{portal_type}.php")
def typed_php(prefix: str, portal_type: str, request: Request, db: Session = Depends(get_db)):
    """``.../{type}.php`` paths used by older firmware."""
    return _handle(request, db)
