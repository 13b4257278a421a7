"""
Wiki API — FastAPI Application Factory
========================================

What:  Creates and configures the FastAPI application instance.
How:   create_app(settings) builds the app, its Database (engine + session
       factory) and stores both on app.state, then registers middleware,
       exception handlers, routes and static files.
Who:   uvicorn (`uvicorn wiki_api.main:app`, or the `wiki-api` script) and tests.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  app.state: settings, database                      │
    │                                                     │
    │  Middleware: Request ID → Access Log → GZip → CORS  │
    │                                                     │
    │  Routes:                                            │
    │  ┌────────────────┐ ┌──────────────────┐ ┌────────┐ │
    │  │ /articles      │ │ /articles/{title}│ │/health │ │
    │  └────────────────┘ └──────────────────┘ └────────┘ │
    │  Static files at / (when the directory exists)      │
    │                                                     │
    │  Exception Handlers:                                │
    │  ValidationError→400 │ DatabaseError→echo │ else→500│
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → schema creation → "listening" log line
    Shutdown: dispose the engine (close pooled connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from wiki_api import __version__
from wiki_api.config import Settings, settings as default_settings
from wiki_api.database import Database
from wiki_api.exceptions import DatabaseError, ValidationError
from wiki_api.middleware.logging import RequestLoggingMiddleware
from wiki_api.middleware.request_id import RequestIDMiddleware, request_id_var
from wiki_api.routes import articles, health

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(settings: Settings) -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s on stdout.
    Called once during startup, before anything else logs.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # These log every operation at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: logging and schema. Shutdown: dispose the database engine."""
    settings: Settings = app.state.settings
    database: Database = app.state.database

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(settings)
    logger.info("Wiki API %s starting up...", __version__)

    if settings.create_schema_on_startup:
        await database.create_schema()

    logger.info("Server is listening on port %d.", settings.backend_port)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Wiki API shutting down...")
    await database.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to responses.

    Handler hierarchy:
        ValidationError  → 400 Bad Request
        DatabaseError    → echoed store error, settings.store_error_status_code
        Exception        → 500 Internal Server Error (logged with traceback)
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        rid = request_id_var.get("")
        logger.warning("[%s] Validation error: %s", rid, exc.message)
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "message": exc.message,
                "details": exc.context,
                "request_id": rid,
            },
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        """Echo the store error (driver exception name and message) to the client."""
        rid = request_id_var.get("")
        logger.error("[%s] Store error in %s: %s: %s", rid, exc.operation, exc.name, exc.message)
        return JSONResponse(
            status_code=request.app.state.settings.store_error_status_code,
            content={
                "error": "store_error",
                "name": exc.name,
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred.",
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Configuration to use; defaults to the environment-loaded
                  module instance. Tests pass their own.

    Returns:
        Configured FastAPI instance. Its Database lives on app.state.database.
    """
    settings = settings or default_settings

    app = FastAPI(
        title="Wiki API",
        description="RESTful CRUD API for wiki articles stored as schemaless documents.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = Database(settings)

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(articles.router)
    app.include_router(health.router)

    # Mounted last so API routes take precedence over files
    static_dir = Path(settings.static_dir)
    if static_dir.is_dir():
        app.mount("/", StaticFiles(directory=str(static_dir)), name="static")

    return app


# uvicorn expects `wiki_api.main:app` to be importable
app = create_app()


def run() -> None:
    """Console entry point: serve the module-level app with uvicorn."""
    uvicorn.run(
        app,
        host=default_settings.backend_host,
        port=default_settings.backend_port,
        log_level=default_settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
