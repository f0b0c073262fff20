"""Request/response logging middleware."""

import logging
import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from kanban_todo.infrastructure.observability.logging import (
    get_correlation_id,
    set_correlation_id,
)

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


# Hey future me, this runs around EVERY request. It sets the correlation id first so all
# logs of the request inherit it, and echoes it back in the response header.
# Query strings are NOT logged: /auth/callback carries the authorization code there.
class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log one line per request start and one per response."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        set_correlation_id(request.headers.get(CORRELATION_HEADER))

        method = request.method
        path = request.url.path
        client_ip = request.client.host if request.client else "unknown"
        # Static assets would drown everything else.
        is_static = path.startswith("/static/")

        if not is_static:
            logger.info(
                f"→ {method} {path}",
                extra={"method": method, "path": path, "client_ip": client_ip},
            )

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.exception(
                f"Request failed: {method} {path}",
                extra={
                    "method": method,
                    "path": path,
                    "duration_ms": int(duration_ms),
                    "error_type": type(e).__name__,
                },
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        if not is_static:
            status_mark = "✓" if response.status_code < 400 else "✗"
            logger.info(
                f"{status_mark} {method} {path} → {response.status_code} ({duration_ms:.0f}ms)",
                extra={
                    "method": method,
                    "path": path,
                    "status_code": response.status_code,
                    "duration_ms": int(duration_ms),
                },
            )

        response.headers[CORRELATION_HEADER] = get_correlation_id()
        return response
