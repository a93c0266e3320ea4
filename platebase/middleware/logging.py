"""
Platebase — Request Logging Middleware
========================================

What:  One access log line per HTTP request.
How:   Times the downstream handler and logs method, path, status, duration,
       request ID and, for dish writes, the size of the submitted form.

Log level by status:
    5xx → ERROR, 4xx → WARNING, everything else → INFO

Request bodies (including photo uploads) are never logged; only their
declared Content-Length is.
"""

import logging
import time
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from platebase.middleware.request_id import request_id_var

logger = logging.getLogger("platebase.access")

# Methods that carry a dish form (and possibly a photo)
UPLOAD_METHODS = {"POST", "PUT"}


def _upload_size(request: Request) -> Optional[int]:
    if request.method not in UPLOAD_METHODS:
        return None
    try:
        return int(request.headers.get("content-length", ""))
    except ValueError:
        return None


def _level_for(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs one line per request; /health probes are skipped."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path == "/health":
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        rid = request_id_var.get("")
        upload_size = _upload_size(request)
        upload = f" upload={upload_size}B" if upload_size is not None else ""

        logger.log(
            _level_for(response.status_code),
            "%s %s %d %.1fms [%s]%s",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            rid,
            upload,
            extra={
                "request_id": rid,
                "status": response.status_code,
                "duration_ms": round(duration_ms, 2),
                "upload_bytes": upload_size,
            },
        )

        return response
