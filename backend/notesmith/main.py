"""
NoteSmith Backend — FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() builds the NoteService (or takes one, for tests),
       registers middleware, exception handlers and routers.
Who:   uvicorn (`uvicorn notesmith.main:app`) and the test suite.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │  Middleware:  Request ID → Logging → GZip → CORS    │
    │  Routes:      /api/notes/generate  /api/purposes    │
    │               /api/chat  /api/images/analyze        │
    │               /health                               │
    │  Exception Handlers:                                │
    │    ValidationError→400 │ LLMServiceError→503 │ →500 │
    │  State:       app.state.note_service                │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  configure logging, report degraded configuration.
    Shutdown: close the OpenRouter HTTP client(s).
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from notesmith import __version__
from notesmith.config import Settings, settings as default_settings
from notesmith.exceptions import LLMServiceError, NoteSmithError, ValidationError
from notesmith.middleware.logging import RequestLoggingMiddleware
from notesmith.middleware.request_id import RequestIDMiddleware, request_id_var
from notesmith.routes import chat, generate, health
from notesmith.services.note_service import NoteService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """
    Configure root logging for the service.

    Format: 2024-01-15T12:00:00 [INFO] notesmith.services.note_service: ...
    Output goes to stdout so container runtimes collect it.
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_body(error: str, message: str, details: Optional[dict] = None) -> dict:
    body = {"error": error, "message": message, "request_id": request_id_var.get("")}
    if details:
        body["details"] = details
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to JSON error responses.

        ValidationError   → 400 (message and field returned)
        LLMServiceError   → 503 (context logged, not returned)
        NoteSmithError    → 500
        Exception         → 500 (traceback logged)

    Note generation itself never raises; these cover chat/image helpers and
    request validation.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=400,
            content=_error_body("validation_error", exc.message, exc.context),
        )

    @app.exception_handler(LLMServiceError)
    async def handle_llm_error(request: Request, exc: LLMServiceError):
        logger.error(
            "[%s] LLM service error: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.context,
        )
        return JSONResponse(
            status_code=503,
            content=_error_body("llm_service_error", exc.message),
        )

    @app.exception_handler(NoteSmithError)
    async def handle_app_error(request: Request, exc: NoteSmithError):
        logger.error(
            "[%s] Application error: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.context,
        )
        return JSONResponse(
            status_code=500,
            content=_error_body("server_error", exc.message),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s",
            request_id_var.get(""),
            str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content=_error_body(
                "internal_server_error",
                "An unexpected error occurred. Please try again or contact support.",
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    app_settings: Optional[Settings] = None,
    note_service: Optional[NoteService] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        app_settings: Settings to use (defaults to the environment-loaded ones).
        note_service: Pre-built service, e.g. one with mocked clients in tests.
                      When omitted it is built from the settings.
    """
    cfg = app_settings or default_settings
    service = note_service or NoteService.from_settings(cfg)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        setup_logging(cfg.log_level)
        logger.info("NoteSmith Backend %s starting up...", __version__)
        try:
            cfg.validate_required_for_production()
        except ValueError as e:
            logger.warning("%s", str(e))
        logger.info(
            "Remote generation: %s",
            "enabled" if service.remote_configured else "disabled (heuristic only)",
        )

        yield

        logger.info("NoteSmith Backend shutting down...")
        await service.aclose()
        logger.info("Shutdown complete.")

    app = FastAPI(
        title="NoteSmith API",
        description=(
            "Turns pasted text, transcripts and articles into structured notes "
            "(title, summary, Markdown body, tags), with a deterministic fallback "
            "when the language model is unavailable."
        ),
        version=__version__,
        lifespan=lifespan,
    )
    app.state.note_service = service

    # Last added runs first: RequestID → Logging → GZip → CORS.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(generate.router)
    app.include_router(chat.router)
    app.include_router(health.router)

    return app


app = create_app()
