"""
Platebase — Request ID Middleware
===================================

What:  Tags every request with an ID, echoed back in X-Request-ID.
How:   A client-supplied X-Request-ID is kept when it is a short token of
       letters, digits, '-', '_' or '.'; anything else is replaced by an
       8-character hex ID. The ID lives in a ContextVar for log lines.
When:  Outermost application middleware, so access logs carry the ID.
"""

import re
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

_CLIENT_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def resolve_request_id(header_value: str) -> str:
    if header_value and _CLIENT_ID_PATTERN.match(header_value):
        return header_value
    return uuid.uuid4().hex[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = resolve_request_id(request.headers.get("X-Request-ID", ""))
        token = request_id_var.set(rid)
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        response.headers["X-Request-ID"] = rid
        return response
