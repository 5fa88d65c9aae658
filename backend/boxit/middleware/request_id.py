"""
BoxIT Backend — Request ID Middleware
======================================

What:  Tags each request with a short correlation id.
How:   Reuses a client-supplied X-Request-ID or generates one, stores it in
       a ContextVar (read by loggers and the exception handlers) and on
       request.state, and echoes it in the response header.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local, so concurrent requests never see each other's id.
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

MAX_CLIENT_ID_LENGTH = 64


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID", "")[:MAX_CLIENT_ID_LENGTH] or uuid.uuid4().hex[:8]

        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers["X-Request-ID"] = rid
        return response
