"""
TechNotes Backend — FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() wires settings, middleware, exception handlers, routes
       and the NoteService; the lifespan opens and disposes the Database.
Who:   uvicorn loads `technotes.main:app`; tests call create_app() with their
       own Settings and Database.

Lifecycle:
    Startup:
    1. Configure logging
    2. Open the Database (unless one was injected) and attach it to app.state
    3. Optionally create tables (DB_CREATE_TABLES)

    Shutdown:
    1. Dispose the Database if this app opened it
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from technotes import __version__
from technotes.config import Settings, settings as default_settings
from technotes.database import Database
from technotes.exceptions import (
    ConflictError,
    DatabaseError,
    InvalidDataError,
    InvalidInputError,
    NotFoundError,
    TechNotesError,
)
from technotes.middleware.logging import RequestLoggingMiddleware
from technotes.middleware.rate_limit import RateLimitMiddleware
from technotes.middleware.request_id import RequestIDMiddleware, request_id_var
from technotes.routes import health, notes
from technotes.services.note_service import NoteService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str) -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Output: stdout (captured by the container runtime)
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers that are noisy at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

# Status code and machine-readable code per error category
ERROR_STATUS = {
    InvalidInputError: (400, "invalid_input"),
    NotFoundError: (400, "not_found"),
    ConflictError: (409, "conflict"),
    InvalidDataError: (409, "invalid_data"),
}


def _request_id(request: Request) -> str:
    # The ContextVar is already reset when the catch-all handler runs
    return getattr(request.state, "request_id", None) or request_id_var.get("")


def _error_body(
    request: Request, code: str, message: str, details: Optional[dict] = None
) -> dict:
    """Every error response carries the same keys; `details` is null when empty."""
    request.state.error_code = code
    return {
        "error": code,
        "message": message,
        "details": details or None,
        "request_id": _request_id(request),
    }


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for consistent error responses.

    Handler hierarchy:
        InvalidInputError       → 400 invalid_input
        RequestValidationError  → 400 invalid_input (body not parseable as a request)
        NotFoundError           → 400 not_found
        ConflictError           → 409 conflict
        InvalidDataError        → 409 invalid_data
        DatabaseError           → 500 server_error (generic message)
        TechNotesError (base)   → 500 server_error
        Exception (fallback)    → 500 internal_server_error

    Stack traces and SQL are logged server-side only.
    """

    async def handle_client_error(request: Request, exc: TechNotesError):
        status_code, code = ERROR_STATUS[type(exc)]
        logger.info("[%s] %s: %s", _request_id(request), code, exc.message)
        return JSONResponse(
            status_code=status_code,
            content=_error_body(request, code, exc.message, exc.context),
        )

    for exc_class in ERROR_STATUS:
        app.add_exception_handler(exc_class, handle_client_error)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        """Malformed bodies share the service's missing-field response."""
        fields = [".".join(str(p) for p in err.get("loc", ())[1:]) for err in exc.errors()]
        return JSONResponse(
            status_code=400,
            content=_error_body(
                request,
                "invalid_input",
                "All fields required",
                {"fields": [f for f in fields if f]},
            ),
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error(
            "[%s] Database error: %s | Context: %s",
            _request_id(request), exc.message, exc.context,
        )
        return JSONResponse(
            status_code=500,
            content=_error_body(
                request, "server_error", "An internal error occurred. Please try again later."
            ),
        )

    @app.exception_handler(TechNotesError)
    async def handle_app_error(request: Request, exc: TechNotesError):
        logger.error("[%s] Application error: %s", _request_id(request), exc.message)
        return JSONResponse(
            status_code=500,
            content=_error_body(request, "server_error", exc.message),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Catch-all: generic 500 with the request id for support tickets."""
        rid = _request_id(request)
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        # Runs outside RequestIDMiddleware, so the header is not added for us
        return JSONResponse(
            status_code=500,
            content=_error_body(
                request,
                "internal_server_error",
                "An unexpected error occurred. Please try again or contact support.",
            ),
            headers={"X-Request-ID": rid} if rid else None,
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    app_settings: Optional[Settings] = None,
    database: Optional[Database] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        app_settings: Settings to use; defaults to the module-level settings
        database: An already-open Database. When given, the app uses it and
            leaves disposing it to the caller. When omitted, the lifespan
            builds one from settings and disposes it on shutdown.

    Returns:
        Fully configured FastAPI instance.
    """
    cfg = app_settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        setup_logging(cfg.log_level)
        logger.info("TechNotes Backend %s starting up...", __version__)

        owns_database = database is None
        db = database or Database.from_settings(cfg)
        app.state.database = db
        if cfg.db_create_tables:
            await db.create_tables()

        logger.info("Server ready at http://%s:%d", cfg.backend_host, cfg.backend_port)

        yield

        logger.info("TechNotes Backend shutting down...")
        if owns_database:
            await db.dispose()
        logger.info("Shutdown complete.")

    app = FastAPI(
        title="TechNotes API",
        description="Notes owned by users: list with owner names, create, update, delete.",
        version=__version__,
        lifespan=lifespan,
    )

    if database is not None:
        app.state.database = database
    app.state.settings = cfg
    app.state.note_service = NoteService(unknown_owner_policy=cfg.unknown_owner_policy)

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RateLimit → RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        max_requests=cfg.rate_limit_requests,
        window_seconds=cfg.rate_limit_window,
    )

    register_exception_handlers(app)

    app.include_router(notes.router)
    app.include_router(health.router)

    return app


app = create_app()
