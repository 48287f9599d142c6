"""
Permissive CORS for player and panel clients.

Every response carries the same allow headers, and any ``OPTIONS`` request
is answered directly with an empty 200.
"""

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

DEFAULT_ALLOW_HEADERS = "authorization, x-client-info, apikey, content-type"


class CORSMiddleware(BaseHTTPMiddleware):
    """Adds ``Access-Control-Allow-*`` headers and short-circuits preflight."""

    def __init__(
        self,
        app: ASGIApp,
        allow_origin: str = "*",
        allow_headers: str = DEFAULT_ALLOW_HEADERS,
    ):
        super().__init__(app)
        self.headers = {
            "Access-Control-Allow-Origin": allow_origin,
            "Access-Control-Allow-Headers": allow_headers,
        }

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=self.headers)

        response = await call_next(request)
        for key, value in self.headers.items():
            response.headers[key] = value
        return response
