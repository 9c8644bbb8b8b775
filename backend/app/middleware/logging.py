"""
Accounting Notes Backend — Request Logging Middleware
=======================================================

What:  One access-log line per HTTP request.
How:   Measures the time spent in the rest of the stack and logs method,
       path, status, duration, request ID and client IP. Note uploads also
       log the declared request body size.
When:  Runs inside RequestIDMiddleware so the request ID is already set.

Log level follows the status class:
    5xx → ERROR, 4xx → WARNING, everything else → INFO

Health probes and static image downloads are logged only when they fail.
Request bodies and uploaded files are never logged.
"""

import logging
import time
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.middleware.request_id import request_id_var

logger = logging.getLogger("accounting_notes.access")

QUIET_PATH_PREFIXES = ("/health", "/uploads/")


def level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


def upload_size_kb(request: Request) -> Optional[float]:
    """Declared body size of a multipart request, in KB."""
    if request.method != "POST":
        return None
    if not request.headers.get("content-type", "").startswith("multipart/form-data"):
        return None
    length = request.headers.get("content-length")
    if not length or not length.isdigit():
        return None
    return int(length) / 1024


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        path = request.url.path
        status = response.status_code
        if status < 400 and path.startswith(QUIET_PATH_PREFIXES):
            return response

        rid = request_id_var.get("")
        client_ip = request.client.host if request.client else "unknown"
        upload_kb = upload_size_kb(request)

        message = "%s %s %d %.1fms [%s] from %s"
        args = [request.method, path, status, duration_ms, rid, client_ip]
        if upload_kb is not None:
            message += " upload=%.1fKB"
            args.append(upload_kb)

        logger.log(
            level_for_status(status),
            message,
            *args,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
                "upload_kb": upload_kb,
            },
        )
        return response
