"""
NoteSmith Backend — Request ID Middleware
===========================================

What:  Tags every request with a short correlation ID and echoes it back.
Why:   One note request can produce several log lines (access log, remote
       call start/finish, fallback warning); the ID ties them together.
How:   Reuses the client's X-Request-ID header when present, otherwise
       generates an 8-character ID; stores it in a ContextVar and on
       request.state, and returns it in the response header.
Who:   Read by the access logger and the exception handlers in main.py.
When:  Outermost custom middleware, so every later layer sees the ID.

Where the ID shows up:
    - X-Request-ID response header (including error responses)
    - `request_id` field of every ErrorResponse body
    - access log line from RequestLoggingMiddleware

    The OpenRouter client logs its own per-call ID, since a single chat or
    generate request makes at most one upstream call.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# ── Context Variable ──────────────────────────────────────────────────────
# What: Coroutine-local storage for the current request ID
# Why ContextVar: concurrent requests share one thread on the event loop;
# each coroutine still sees only its own value.
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Assigns X-Request-ID to each request and response.

    Behavior:
        1. Use the client's X-Request-ID header if it sent one
        2. Otherwise generate the first 8 characters of a UUID4
        3. Store it in request_id_var and request.state.request_id
        4. Reset the ContextVar once the handler finishes
        5. Add it to the response headers

    Why accept client-provided IDs:
        The frontend can attach the same ID to its own error reports, so a
        failed "Generate" click can be matched to the backend log line.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]

        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            # Why reset: the task may be reused; a stale ID must not leak
            request_id_var.reset(token)

        response.headers["X-Request-ID"] = rid
        return response
