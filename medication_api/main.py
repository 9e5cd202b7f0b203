"""
Medication API - FastAPI Application Factory
============================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn (uvicorn medication_api.main:app) or by main().

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌──────────┐ ┌──────┐                 │
    │  │  Req ID  │→│ Logging  │→│ CORS │                 │
    │  └──────────┘ └──────────┘ └──────┘                 │
    │                                                     │
    │  Routes:                                            │
    │  ┌─────────────────────────┐ ┌──────────────┐       │
    │  │ /medications[/{id}]     │ │ GET /health  │       │
    │  └─────────────────────────┘ └──────────────┘       │
    │                                                     │
    │  Exception Handlers:                                │
    │  ┌──────────────────────────────────────────────┐   │
    │  │ BadRequest→400 │ NotFound→404 │ Database→500 │   │
    │  └──────────────────────────────────────────────┘   │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Connect to MongoDB unless a database was injected
       (missing settings or an unreachable server abort startup)

    Shutdown (after uvicorn has drained in-flight requests):
    1. Close the MongoDB client exactly once
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import uvicorn
from bson import ObjectId
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from medication_api import __version__
from medication_api.config import Settings, settings
from medication_api.database import MongoDatabase
from medication_api.exceptions import (
    BadRequestError,
    DatabaseError,
    MedicationAPIError,
    NotFoundError,
)
from medication_api.middleware.logging import RequestLoggingMiddleware
from medication_api.middleware.request_id import RequestIDMiddleware, request_id_var
from medication_api.routes import health, medications
from medication_api.services.medication_service import MedicationService

logger = logging.getLogger(__name__)

CORS_ALLOWED_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
CORS_ALLOWED_HEADERS = ["Content-Type", "Authorization"]


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(log_level: str) -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Output: stdout (captured by Docker / systemd)
    """
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Open the database on startup and close it on shutdown.

    A database injected through create_app() is used as-is and still
    closed on shutdown. Startup errors are logged and re-raised, which
    makes uvicorn abort.
    """
    app_settings: Settings = app.state.settings
    setup_logging(app_settings.log_level)
    logger.info("Medication API %s starting up...", __version__)

    if app.state.database is None:
        try:
            app.state.database = await MongoDatabase.connect(app_settings)
        except MedicationAPIError as e:
            logger.error("Startup failed: %s", e.message)
            raise

    logger.info(
        "Server ready at http://%s:%d", app_settings.backend_host, app_settings.backend_port
    )

    yield

    logger.info("Medication API shutting down...")
    await app.state.database.close()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(status_code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "message": message,
            "request_id": request_id_var.get(""),
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and response bodies.

    Handler hierarchy:
        BadRequestError          → 400 Bad Request
        RequestValidationError   → 400 Bad Request (body failed to decode)
        NotFoundError            → 404 Not Found
        DatabaseError            → 500 Internal Server Error
        MedicationAPIError       → 500 Internal Server Error
        Exception (fallback)     → 500 Internal Server Error

    Responses carry only the short message. Context and stack traces are
    logged server-side.
    """

    @app.exception_handler(BadRequestError)
    async def handle_bad_request(request: Request, exc: BadRequestError):
        logger.warning("[%s] Bad request: %s", request_id_var.get(""), exc.message)
        return _error_response(400, "bad_request", exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        """
        FastAPI decodes the body before the handler runs. A malformed path
        id still takes precedence, so PUT reports the id first.
        """
        raw_id = request.path_params.get("medication_id")
        if raw_id is not None and not ObjectId.is_valid(raw_id):
            message = "Invalid medication ID"
        else:
            message = "Invalid input"
        logger.warning(
            "[%s] Request did not decode: %s", request_id_var.get(""), exc.errors()
        )
        return _error_response(400, "bad_request", message)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error_response(404, "not_found", exc.message)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error(
            "[%s] Database error: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.context,
        )
        return _error_response(500, "server_error", exc.message)

    @app.exception_handler(MedicationAPIError)
    async def handle_application_error(request: Request, exc: MedicationAPIError):
        logger.error(
            "[%s] Application error: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.context,
        )
        return _error_response(500, "server_error", exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s",
            request_id_var.get(""),
            str(exc),
            exc_info=True,
        )
        return _error_response(
            500, "internal_server_error", "An unexpected error occurred."
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    app_settings: Optional[Settings] = None,
    database: Optional[MongoDatabase] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        app_settings: Settings to use (defaults to the module-level settings)
        database:     Pre-built database to attach instead of connecting in
                      the lifespan. Anything with `collection`, `ping()` and
                      `close()` works, which is how tests inject an
                      in-memory collection.

    Returns:
        Fully configured FastAPI instance ready to receive requests.
    """
    app_settings = app_settings or settings

    app = FastAPI(
        title="Medication API",
        description="CRUD API for medication records stored in MongoDB.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = app_settings
    app.state.database = database
    app.state.medication_service = MedicationService(
        operation_timeout=app_settings.operation_timeout_seconds
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Middleware executes in REVERSE order of addition (last added = outermost)
    if app_settings.cors_enabled:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=app_settings.cors_origins_list,
            allow_methods=CORS_ALLOWED_METHODS,
            allow_headers=CORS_ALLOWED_HEADERS,
        )

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(medications.router)
    app.include_router(health.router)

    return app


# uvicorn expects `medication_api.main:app` to be importable
app = create_app()


def main() -> None:
    """Console entry point: serve the module-level app with uvicorn."""
    uvicorn.run(
        "medication_api.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
