"""
Request ID middleware for tracking requests
"""
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from itam.core.logging import set_request_id, set_tenant_id


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Tags every request and its log lines with a request ID and the caller's tenant"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID")
        if not request_id:
            request_id = str(uuid.uuid4())[:8]

        set_request_id(request_id)
        set_tenant_id(request.headers.get("X-Tenant-ID"))

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response
