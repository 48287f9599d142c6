"""Same-origin stream proxy endpoints"""

import asyncio
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, Response
from sqlalchemy.orm import Session

from ..database import get_db
from ..streaming import HLSProxy, ProxyError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Proxy"])


@router.get("/stream-proxy/{path:path}")
@router.get("/proxy/{path:path}")
@router.get("/functions/v1/stream-proxy/{path:path}")
async def stream_proxy(path: str, db: Session = Depends(get_db)):
    """
    Proxy a stream file.

    Paths are ``{stream_name}/{file}`` or, for subscribers,
    ``{username}/{password}/{stream_name}/{file}``.
    """
    proxy = HLSProxy(db)
    try:
        target = await asyncio.to_thread(proxy.resolve, path)
        result = await proxy.fetch(target)
    except ProxyError as e:
        return JSONResponse({"error": e.message}, status_code=e.status_code)
    except Exception as e:
        logger.error(f"[Proxy] Error: {e}", exc_info=True)
        return JSONResponse({"error": str(e)}, status_code=500)

    return Response(
        content=result.content,
        media_type=result.media_type,
        headers={"Cache-Control": result.cache_control},
    )
