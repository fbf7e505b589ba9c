"""
CodeVault Backend — Origin Allow-List Middleware
=================================================

What:  Rejects cross-origin requests whose Origin is not in CORS_ORIGINS.
Why:   Starlette's CORSMiddleware only withholds the CORS response headers
       for unknown origins; the request itself still reaches the route. This
       middleware stops it with 403 before any handler runs.
How:   Requests without an Origin header (curl, server-to-server, same-origin
       navigation) pass untouched.

Response for a rejected origin:
    403 {"error": "Origin not allowed"}

The rejected origin is logged only when ENVIRONMENT=development.
"""

import logging
from typing import Iterable, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from codevault.config import settings
from codevault.exceptions import OriginNotAllowedError

logger = logging.getLogger(__name__)


class OriginAllowListMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, allowed_origins: Optional[Iterable[str]] = None, **kwargs):
        super().__init__(app, **kwargs)
        self._allowed = set(allowed_origins) if allowed_origins is not None else None

    @property
    def allowed_origins(self) -> set:
        if self._allowed is not None:
            return self._allowed
        return set(settings.cors_origins_list)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        origin = request.headers.get("origin")
        if origin and origin not in self.allowed_origins:
            exc = OriginNotAllowedError(origin=origin)
            if settings.is_development:
                logger.warning("Blocked request from origin %s to %s", origin, request.url.path)
            return JSONResponse(status_code=exc.status_code, content={"error": exc.message})
        return await call_next(request)
