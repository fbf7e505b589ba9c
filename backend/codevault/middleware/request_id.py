"""
CodeVault Backend — Request ID Middleware
==========================================

What:  Assigns a correlation ID to each request and returns it in the
       `X-Request-ID` response header.
How:   Uses the client's X-Request-ID when sent, otherwise a short UUID. The
       value lives in a ContextVar so loggers and exception handlers can read
       it without access to the request object.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on the same event loop each see their own id
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

MAX_CLIENT_ID_LENGTH = 64


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Behavior:
        1. Client sent X-Request-ID (e.g. the API client in codevault.client)? Use it.
        2. Otherwise generate an 8-character id.
        3. Store in the ContextVar and in request.state.
        4. Echo it on the response.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        client_id = request.headers.get("X-Request-ID", "").strip()
        rid = client_id[:MAX_CLIENT_ID_LENGTH] if client_id else str(uuid.uuid4())[:8]

        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers["X-Request-ID"] = rid
        return response
