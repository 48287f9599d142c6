"""Health check API endpoint for StreamPanel"""

import logging
from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from streampanel import __version__

from ..database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])


def check_database(db: Session) -> dict[str, Any]:
    """Run a trivial query against the catalog."""
    try:
        db.execute(text("SELECT 1"))
        return {"status": "ok"}
    except Exception as e:
        logger.warning(f"Database health check failed: {e}")
        return {"status": "error", "error": str(e)}


@router.get("")
def health_check(db: Session = Depends(get_db)) -> dict[str, Any]:
    """Health check endpoint."""
    database = check_database(db)
    return {
        "status": "healthy" if database["status"] == "ok" else "degraded",
        "version": __version__,
        "app": "StreamPanel",
        "checks": {"database": database},
    }
