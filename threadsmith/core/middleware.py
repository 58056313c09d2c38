"""
Middleware - request tracing and uniform error responses.
"""
import time
from typing import Callable
from uuid import uuid4

from fastapi import HTTPException, Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from threadsmith.core.errors import BaseApplicationError
from threadsmith.core.logging import get_logger

logger = get_logger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Attach a request id and the processing time to every response."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = str(uuid4())
        request.state.request_id = request_id
        start_time = time.time()

        response = await call_next(request)

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = str(time.time() - start_time)
        return response


def _error_response(request: Request, status_code: int, error_code: str, message: str, details: dict = None) -> JSONResponse:
    """Uniform error payload."""
    request_id = getattr(request.state, "request_id", None)
    content = {
        "error": {
            "code": error_code,
            "message": message,
            "details": details or {},
            "request_id": request_id,
        }
    }
    return JSONResponse(status_code=status_code, content=content)


async def error_handler(request: Request, exc: Exception):
    """Global exception handler."""
    if isinstance(exc, BaseApplicationError):
        return _error_response(request, exc.status_code, exc.error_code.value, exc.message, exc.details)
    if isinstance(exc, HTTPException):
        return _error_response(request, exc.status_code, "HTTP_ERROR", str(exc.detail))

    logger.error("unhandled_exception", path=request.url.path, error=str(exc), exc_info=True)
    return _error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_ERROR",
        "An unexpected error occurred",
        {"type": type(exc).__name__},
    )
