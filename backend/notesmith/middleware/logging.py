"""
NoteSmith Backend — Request Logging Middleware
================================================

What:  One access-log line per HTTP request with status and duration.
Why:   Generation latency is dominated by the upstream model; the duration
       per route shows at a glance whether notes came from the model or
       from the local fallback.
How:   Measures wall time around the downstream handler and logs through the
       `notesmith.access` logger.
Who:   Applied to every request via Starlette middleware.
When:  Runs inside RequestIDMiddleware so the correlation ID is available.

Log line:
    POST /api/notes/generate 200 2345.6ms [a1b2c3d4] from 127.0.0.1

    The same values are attached as `extra` fields (request_id, method,
    path, status, duration_ms, client_ip) for structured handlers.

Typical durations:
    GET  /health                 1-5ms
    POST /api/notes/generate     heuristic only: <10ms
                                 with the remote model: 2-10s
    POST /api/images/analyze     2-8s (multimodal call)

What we log vs what we DON'T log (privacy):
    ✅ Log: method, path, status, duration, client IP, request ID
    ❌ Don't log: request bodies (raw notes, chat history, images)
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from notesmith.middleware.request_id import request_id_var

logger = logging.getLogger("notesmith.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs method, path, status, duration and request ID for each request.

    Log level follows the status code:
        5xx → ERROR    (something on our side or upstream broke)
        4xx → WARNING  (caller sent something we rejected)
        else → INFO

    Health probes are skipped: container runtimes call /health every few
    seconds and those lines would drown the useful ones.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start_time = time.perf_counter()

        client_ip = getattr(request.client, "host", "unknown") if request.client else "unknown"
        method = request.method
        path = request.url.path
        rid = request_id_var.get("")

        if path == "/health":
            return await call_next(request)

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000

        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s",
            method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )

        return response
