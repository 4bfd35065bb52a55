"""
Cookbook Backend — FastAPI Application Factory
================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() builds the record store, the upload and
       recipe services, registers middleware, exception handlers and routes,
       and returns a configured FastAPI instance.
Who:   Called by uvicorn (uvicorn cookbook.main:app) and by the test suite,
       which builds a fresh app per test.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  app.state:  settings │ store │ upload_service │    │
    │              recipe_service                         │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────────────────────┐ ┌──────┐ ┌──────┐     │
    │  │ Request context (ID+log) │→│ GZip │→│ CORS │     │
    │  └──────────────────────────┘ └──────┘ └──────┘     │
    │                                                     │
    │  Routes:                                            │
    │  /api/recipes[/{id}] │ /uploads/{name} │ / │ /health│
    │                                                     │
    │  Exception Handlers:                                │
    │  ValidationError→400 │ NotFound→404 │ other→500     │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:   configure logging, create the uploads directory
    Shutdown:  log how many recipes are dropped with the process
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from cookbook import __version__
from cookbook.config import Settings, settings as default_settings
from cookbook.exceptions import (
    CookbookError,
    FileStorageError,
    NotFoundError,
    ValidationError,
)
from cookbook.middleware.request_context import RequestContextMiddleware, request_id_var
from cookbook.routes import health, recipes, uploads
from cookbook.services.recipe_service import RecipeService
from cookbook.services.upload_service import UploadService
from cookbook.store import RecordStore

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once from the lifespan handler, before anything else logs.
    """
    log_format = (
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    )

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
        force=True,
    )

    # Request logging is done by RequestContextMiddleware
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("python_multipart").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: logging, uploads directory. Shutdown: a closing log line.

    The record store is in-memory only; everything it holds is gone when
    the process exits.
    """
    config: Settings = app.state.settings

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(config.log_level)
    logger.info("=" * 60)
    logger.info("Cookbook Backend starting up...")

    uploads_dir = app.state.upload_service.uploads_dir
    uploads_dir.mkdir(parents=True, exist_ok=True)
    logger.info("Uploads directory: %s (served at %s)", uploads_dir, config.uploads_url_prefix)

    logger.info("Server ready at http://%s:%d", config.backend_host, config.backend_port)
    logger.info("API docs: http://%s:%d/docs", config.backend_host, config.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info(
        "Cookbook Backend shutting down (%d recipes held in memory are discarded)",
        len(app.state.store.recipes),
    )


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for consistent error responses.

    Handler hierarchy:
        ValidationError         → 400 Bad Request (details echoed to caller)
        NotFoundError           → 404 Not Found
        FileStorageError        → 500 Internal Server Error
        CookbookError (base)    → 500 Internal Server Error
        Exception (fallback)    → 500 Internal Server Error, message = str(exc)
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

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        rid = request_id_var.get("")
        return JSONResponse(
            status_code=404,
            content={
                "error": "not_found",
                "message": exc.message,
                "details": exc.context,
                "request_id": rid,
            },
        )

    @app.exception_handler(FileStorageError)
    async def handle_file_storage_error(request: Request, exc: FileStorageError):
        """File system error: message to the client, paths only in the log."""
        rid = request_id_var.get("")
        logger.error("[%s] File storage error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(CookbookError)
    async def handle_cookbook_error(request: Request, exc: CookbookError):
        rid = request_id_var.get("")
        logger.error("[%s] Application error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """
        Catch-all for unexpected errors.

        Returns 500 with the failure's message; the stack trace is logged.
        """
        rid = request_id_var.get("")
        logger.error(
            "[%s] Unexpected error: %s",
            rid,
            str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": str(exc) or type(exc).__name__,
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    config: Optional[Settings] = None,
    store: Optional[RecordStore] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Settings to use; defaults to the environment-loaded settings.
        store:  Record store to serve; defaults to a fresh empty RecordStore.

    Returns: Fully configured FastAPI instance ready to receive requests.
    """
    config = config or default_settings
    store = store if store is not None else RecordStore()

    app = FastAPI(
        title="Cookbook API",
        description=(
            "Recipe catalog backend: store recipes with optional images, then list, "
            "search, filter by category, update and delete them."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Wire Components ───────────────────────────────────────────────────
    upload_service = UploadService(
        uploads_dir=config.uploads_dir,
        url_prefix=config.uploads_url_prefix,
        max_size=config.max_image_size,
    )
    app.state.settings = config
    app.state.store = store
    app.state.upload_service = upload_service
    app.state.recipe_service = RecipeService(store=store, uploads=upload_service)

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: request context → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestContextMiddleware, uploads_url_prefix=config.uploads_url_prefix)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(recipes.router)
    app.include_router(uploads.router, prefix=config.uploads_url_prefix)
    app.include_router(health.router)

    return app


# uvicorn expects `cookbook.main:app` to be importable
app = create_app()
