"""
TechNotes Backend — Request Logging Middleware
================================================

What:  One access log line per HTTP request, naming the outcome category.
How:   The exception handlers in main.py record the machine-readable error
       code (`invalid_input`, `not_found`, `conflict`, ...) on
       `request.state.error_code`. This middleware reads it back after the
       response is produced, so a rejected duplicate title and an unknown
       note id are distinguishable in the logs even though both are 4xx.

Log line:
    PATCH /api/notes 409 conflict 2.4ms [1a2b3c4d]
    GET /api/notes 200 ok 5.1ms [1a2b3c4d]

Levels:
    5xx                                   → ERROR
    conflict / invalid_data (store state) → WARNING
    other 4xx (caller mistakes)           → INFO
    success                               → INFO

Request bodies are never logged; note text may contain personal data.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from technotes.middleware.request_id import request_id_var

logger = logging.getLogger("technotes.access")

# Outcomes that reflect contention on stored data rather than a bad request
WARNING_CODES = {"conflict", "invalid_data"}


def outcome_level(status: int, error_code: str) -> int:
    if status >= 500:
        return logging.ERROR
    if error_code in WARNING_CODES:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, path, status, error code and duration for each request."""

    # Probed every few seconds by orchestrators
    QUIET_PATHS = {"/health"}

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        status = response.status_code
        error_code = getattr(request.state, "error_code", None)
        if error_code is None:
            error_code = "ok" if status < 400 else "error"
        rid = request_id_var.get("")

        logger.log(
            outcome_level(status, error_code),
            "%s %s %d %s %.1fms [%s]",
            request.method,
            request.url.path,
            status,
            error_code,
            duration_ms,
            rid,
            extra={
                "request_id": rid,
                "status": status,
                "error_code": error_code,
                "duration_ms": round(duration_ms, 2),
            },
        )

        return response
