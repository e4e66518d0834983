"""
SolForge - HTTP Middleware

Every request runs with a request id (X-Request-ID, generated when absent)
and, when the client sends one, a project id (X-Project-ID) in the logging
context, so parse and merge events can be traced back to the call.
"""

import logging
import time
from typing import Callable, FrozenSet

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from solforge.core.logging_config import (
    generate_request_id,
    logger,
    set_project_id,
    set_request_id,
)

REQUEST_ID_HEADER = "X-Request-ID"
PROJECT_ID_HEADER = "X-Project-ID"

# Polled or static; not worth a log line each
QUIET_PATHS: FrozenSet[str] = frozenset({
    "/api/v1/health",
    "/docs",
    "/redoc",
    "/openapi.json",
})


def _level_for_status(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Request-id context, one completion log line, timing headers"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or generate_request_id()
        set_request_id(request_id)
        set_project_id(request.headers.get(PROJECT_ID_HEADER, ""))

        method, path = request.method, request.url.path
        started = time.perf_counter()

        try:
            response = await call_next(request)
            elapsed_ms = (time.perf_counter() - started) * 1000

            response.headers[REQUEST_ID_HEADER] = request_id
            response.headers["X-Response-Time"] = f"{elapsed_ms:.2f}ms"

            if path not in QUIET_PATHS:
                logger.log(
                    _level_for_status(response.status_code),
                    f"{method} {path} -> {response.status_code} ({elapsed_ms:.2f}ms)",
                    extra={"event_type": "http_request", "http_method": method, "http_path": path,
                           "http_status": response.status_code, "duration_ms": elapsed_ms}
                )
            return response

        except Exception as exc:
            logger.error(
                f"✗ {method} {path} raised {type(exc).__name__}",
                exc_info=True,
                extra={"event_type": "http_error", "http_method": method, "http_path": path,
                       "duration_ms": (time.perf_counter() - started) * 1000}
            )
            raise

        finally:
            set_request_id("")
            set_project_id("")
