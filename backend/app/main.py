"""
Accounting Notes Backend — FastAPI Application Factory
========================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance;
       run() serves the module-level `app` with uvicorn.
Who:   uvicorn (uvicorn app.main:app) or the `accounting-notes` console script.

Application Architecture:
    ┌─────────────────────────────────────────────────────────┐
    │                       FastAPI App                       │
    │                                                         │
    │  Middleware:  Request ID → Logging → GZip → CORS        │
    │                                                         │
    │  Routes:                                                │
    │    GET/POST        /api/notes                           │
    │    GET             /api/notes/{paper}/{chapterId}       │
    │    DELETE          /api/notes/{id}                      │
    │    GET             /api/chapters/{paper}                │
    │    GET             /health                              │
    │    static          /uploads/<name>                      │
    │                                                         │
    │  Exception Handlers:                                    │
    │    Validation→400 │ NotFound→404 │ TooLarge→413 │ →500  │
    └─────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:   logging → storage directory → database connect (+ create_all)
    Shutdown:  dispose database engine
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
from fastapi.staticfiles import StaticFiles

from app import __version__
from app.config import Settings, settings as default_settings
from app.database import Database
from app.exceptions import (
    AccountingNotesError,
    DatabaseError,
    FileStorageError,
    NotFoundError,
    PayloadTooLargeError,
    ValidationError,
)
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.request_id import RequestIDMiddleware, request_id_var
from app.routes import chapters, health, notes
from app.services.chapter_catalog import ChapterCatalog
from app.services.file_service import PUBLIC_PREFIX, FileService
from app.services.note_service import NoteService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s on stdout.
    Called once during startup, before any other initialization.
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("multipart").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Open the resources the request handlers depend on, release them on shutdown.

    Startup sequence:
        1. Setup logging
        2. Create the upload directory
        3. Connect the database (and create tables when enabled)

    Shutdown sequence:
        1. Dispose the database engine (close all pooled connections)
    """
    app_settings: Settings = app.state.settings

    setup_logging(app_settings.log_level)
    logger.info("=" * 60)
    logger.info("Accounting Notes Backend starting up...")

    storage = app.state.file_service.ensure_storage_root()
    logger.info("Upload directory: %s", storage)

    await app.state.db.connect()

    logger.info("Server ready at http://%s:%d", app_settings.backend_host, app_settings.backend_port)
    logger.info("=" * 60)

    try:
        yield
    finally:
        logger.info("Accounting Notes Backend shutting down...")
        await app.state.db.dispose()
        logger.info("Shutdown complete.")


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
    Map exception types to HTTP status codes and JSON error bodies.

    Handler hierarchy:
        ValidationError, RequestValidationError  → 400 Bad Request
        NotFoundError                            → 404 Not Found
        PayloadTooLargeError                     → 413 Payload Too Large
        FileStorageError, DatabaseError          → 500 Internal Server Error
        AccountingNotesError (base)              → 500 Internal Server Error
        Exception (fallback)                     → 500 Internal Server Error

    Every body carries "message"; context dicts are logged and, for 400s,
    returned as "details". Stack traces are logged, never returned.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=400,
            content=_error_body("validation_error", exc.message, exc.context),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        problems = []
        for error in exc.errors():
            location = ".".join(str(part) for part in error.get("loc", ()) if part not in ("body", "path", "query"))
            problems.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
        message = "Invalid request: " + "; ".join(problems)
        logger.warning("[%s] Request validation error: %s", request_id_var.get(""), message)
        return JSONResponse(
            status_code=400,
            content=_error_body("validation_error", message, {"errors": problems}),
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return JSONResponse(
            status_code=404,
            content=_error_body("not_found", exc.message),
        )

    @app.exception_handler(PayloadTooLargeError)
    async def handle_payload_too_large(request: Request, exc: PayloadTooLargeError):
        logger.warning("[%s] Upload rejected: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=413,
            content=_error_body("payload_too_large", exc.message, {"max_size": exc.max_size}),
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(status_code=500, content=_error_body("database_error", exc.message))

    @app.exception_handler(FileStorageError)
    async def handle_file_storage_error(request: Request, exc: FileStorageError):
        rid = request_id_var.get("")
        logger.error("[%s] File storage error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(status_code=500, content=_error_body("storage_error", exc.message))

    @app.exception_handler(AccountingNotesError)
    async def handle_app_error(request: Request, exc: AccountingNotesError):
        logger.error("[%s] Application error: %s", request_id_var.get(""), exc.message)
        return JSONResponse(status_code=500, content=_error_body("server_error", exc.message))

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
                "An unexpected error occurred. Please try again later.",
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Configuration for this instance; defaults to the
                  environment-loaded singleton. Tests pass their own.

    The returned app holds its collaborators on app.state:
        settings, db (Database), file_service, note_service, chapter_catalog
    Nothing touches the network or the disk until the lifespan starts.
    """
    settings = settings or default_settings

    app = FastAPI(
        title="Accounting Notes API",
        description=(
            "Share accounting study notes: upload note images per paper and chapter, "
            "browse them newest first, and read the chapter catalog."
        ),
        version=__version__,
        lifespan=lifespan,
    )

    file_service = FileService(
        storage_root=settings.storage_root,
        max_file_size=settings.max_file_size,
        max_files=settings.max_files_per_request,
    )
    app.state.settings = settings
    app.state.db = Database(settings)
    app.state.file_service = file_service
    app.state.note_service = NoteService(file_service)
    app.state.chapter_catalog = ChapterCatalog(
        fallback_to_second_paper=settings.chapter_fallback_to_second_paper,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestID → Logging → GZip → CORS
    origins = settings.cors_origins_list
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(notes.router)
    app.include_router(chapters.router)
    app.include_router(health.router)

    # Directory is created by the lifespan, so skip the construction-time check
    app.mount(
        PUBLIC_PREFIX,
        StaticFiles(directory=str(file_service.storage_root), check_dir=False),
        name="uploads",
    )

    return app


app = create_app()


def run() -> None:
    """Serve the application with uvicorn on the configured host and port."""
    import uvicorn

    uvicorn.run(
        app,
        host=default_settings.backend_host,
        port=default_settings.backend_port,
        log_level=default_settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
