"""API middleware for request tracing and access logging."""

import time
from uuid import uuid4

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from ..logging import log_api_request


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tag each request with an ID and log it once it completes."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        """Add a request ID header and log method, path, status and duration.

        Args:
            request: Incoming request
            call_next: Next middleware/handler

        Returns:
            Response with request ID header
        """
        # Keep the client's ID when one is supplied
        request_id = request.headers.get("X-Request-ID") or str(uuid4())
        request.state.request_id = request_id

        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000

        response.headers["X-Request-ID"] = request_id
        log_api_request(
            request.method,
            request.url.path,
            response.status_code,
            round(duration_ms, 2),
            request_id=request_id,
        )
        return response
