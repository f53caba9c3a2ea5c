"""Request logging middleware — one log line per request, 500 on crashes.

Learn: Logs method, path, status and duration for every request. It is
also the outermost catch for exceptions nobody else handled: the error
is logged with its traceback (server side only) and the client gets a
generic problem body with no internal details.

Registered inside RequestIdMiddleware so request_id is already bound
to the log context when these lines are written.
"""

import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from todoapi.errors import UNEXPECTED_TITLE

logger = structlog.get_logger()


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each request and turn unhandled exceptions into a bare 500."""

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.monotonic()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "request.unhandled_error",
                method=request.method,
                path=request.url.path,
            )
            response = JSONResponse(
                status_code=500,
                content={"title": UNEXPECTED_TITLE, "status": 500},
            )

        logger.info(
            "request.completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=int((time.monotonic() - start) * 1000),
        )
        return response
