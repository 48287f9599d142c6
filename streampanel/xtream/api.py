"""Xtream Codes compatible ``player_api.php`` endpoint"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..auth import authenticate_user
from ..database import get_db
from ..panel_settings import load_panel_settings
from ..utils.timeutils import utcnow
from .actions import XtreamContext, dispatch

logger = logging.getLogger(__name__)

xtream_router = APIRouter(tags=["Xtream Codes"])

NOT_AUTHENTICATED = {"user_info": {"auth": 0}}


@xtream_router.get("/player_api.php")
def player_api(
    request: Request,
    username: Optional[str] = None,
    password: Optional[str] = None,
    action: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """
    Xtream Codes player API.

    Authentication failures are answered with HTTP 200 and
    ``{"user_info": {"auth": 0}}``; players treat anything else as a server
    fault.
    """
    logger.info(f"[Xtream API] Action: {action}, Username: {username}")

    try:
        now = utcnow()
        user = authenticate_user(db, username, password, now=now)
        if user is None:
            return JSONResponse(NOT_AUTHENTICATED)

        ctx = XtreamContext(
            db=db,
            user=user,
            settings=load_panel_settings(db),
            request_host=request.url.hostname or "localhost",
            params=dict(request.query_params),
            now=now,
        )
        result = dispatch(action, ctx)
        logger.debug(f"[Xtream API] Action {action} completed successfully")
        return JSONResponse(result)

    except Exception as e:
        logger.error(f"[Xtream API] Error: {e}", exc_info=True)
        return JSONResponse({"error": str(e)}, status_code=500)
