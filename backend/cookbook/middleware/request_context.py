"""
Cookbook Backend — Request Context Middleware
===============================================

What:  Gives every request a correlation ID and writes one access log line
       when the response is ready.
How:   The ID comes from a well-formed client X-Request-ID header or a fresh
       8-character UUID prefix. It lives in a ContextVar so the exception
       handlers can put it in error bodies, and it is echoed back as a
       response header.

Log levels by response status:
    5xx → ERROR │ 4xx → WARNING │ image fetches under /uploads → DEBUG │ else INFO
    /health is never logged.
"""

import logging
import re
import time
import uuid
from contextvars import ContextVar
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

access_logger = logging.getLogger("cookbook.access")

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# Client-supplied IDs end up in log lines; anything else is replaced
_CLIENT_ID_RE = re.compile(r"[A-Za-z0-9._-]{1,64}")


def pick_request_id(header_value: Optional[str]) -> str:
    if header_value and _CLIENT_ID_RE.fullmatch(header_value):
        return header_value
    return uuid.uuid4().hex[:8]


class RequestContextMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, uploads_url_prefix: str = "/uploads"):
        super().__init__(app)
        self.uploads_url_prefix = uploads_url_prefix.rstrip("/") + "/"

    def level_for(self, path: str, status: int) -> int:
        if status >= 500:
            return logging.ERROR
        if status >= 400:
            return logging.WARNING
        if path.startswith(self.uploads_url_prefix):
            return logging.DEBUG
        return logging.INFO

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        rid = pick_request_id(request.headers.get("X-Request-ID"))
        request_id_var.set(rid)

        started = time.perf_counter()
        response = await call_next(request)
        response.headers["X-Request-ID"] = rid

        path = request.url.path
        if path != "/health":
            access_logger.log(
                self.level_for(path, response.status_code),
                "%s %s %d %.1fms [%s]",
                request.method,
                path,
                response.status_code,
                (time.perf_counter() - started) * 1000,
                rid,
            )
        return response
