"""
MET API — FastAPI Application Factory
=======================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance;
       `app` at module level is what uvicorn serves
       (uvicorn met_api.main:app).

Lifecycle:
    Startup:
    1. Initialize logging
    2. Create database tables when any domain uses the database
    3. Build repositories (file-backed ones load their JSON files)
    4. Start the periodic backup task when BACKUP_INTERVAL_SECONDS > 0

    Shutdown:
    1. Cancel the backup task
    2. Dispose the database engine

Error responses:
    Every error leaves as {"message": <fixed text>, "request_id": <id>}.
    Route handlers already converted domain errors through
    common_error_handler; the handlers below format them and catch
    anything that slipped through.
"""

import asyncio
import contextlib
import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from met_api import __version__
from met_api.config import settings
from met_api.database import async_session_factory, create_tables, dispose_engine
from met_api.middleware.auth import AuthMiddleware, StaticTokenVerifier, TokenVerifier
from met_api.middleware.logging import RequestLoggingMiddleware
from met_api.middleware.request_id import RequestIDMiddleware, request_id_var
from met_api.routes import backup, blog, budget, files, health, notes, vice_bank
from met_api.routes.common import INVALID_INPUT, SERVER_ERROR
from met_api.services.file_service import FileService
from met_api.services.ledger_service import LedgerService
from met_api.storage import Repositories, build_repositories, periodic_backup

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """Configures the root logger once for the whole application."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries are chatty at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("MET API %s starting up...", __version__)

    if settings.uses_database():
        await create_tables()
        logger.info("Database ready: %s", settings.database_url.split("@")[-1])

    if getattr(app.state, "repositories", None) is None:
        app.state.repositories = await build_repositories(settings, async_session_factory)

    backup_task: Optional[asyncio.Task] = None
    if settings.backup_interval_seconds > 0:
        backup_task = asyncio.create_task(
            periodic_backup(app.state.repositories, settings.backup_interval_seconds)
        )
        logger.info("Periodic backup every %ds", settings.backup_interval_seconds)

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("MET API shutting down...")
    if backup_task is not None:
        backup_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await backup_task

    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """Formats every error as {"message", "request_id"}."""

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": exc.detail, "request_id": request_id_var.get("")},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        rid = request_id_var.get("")
        logger.info("[%s] Request validation failed: %s", rid, exc.errors())
        return JSONResponse(
            status_code=400,
            content={"message": INVALID_INPUT, "request_id": rid},
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, exc, exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"message": SERVER_ERROR, "request_id": rid},
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    repositories: Optional[Repositories] = None,
    file_service: Optional[FileService] = None,
    verifier: Optional[TokenVerifier] = None,
) -> FastAPI:
    """
    Assemble the application.

    Args:
        repositories: Pre-built repositories (tests); built at startup
                      from settings when omitted.
        file_service: Upload storage; defaults to settings.uploads_path.
        verifier:     Token verifier; defaults to AUTH_TOKENS.
    """
    app = FastAPI(
        title="MET API",
        description=(
            "Vice bank, notes, blog, file and budget backend with pluggable "
            "memory, file and database storage."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.repositories = repositories
    app.state.file_service = file_service or FileService()
    app.state.ledger_service = LedgerService()

    # Middleware executes in REVERSE order of addition:
    # RequestID → Logging → Auth → GZip → CORS → route
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(
        AuthMiddleware,
        verifier=verifier or StaticTokenVerifier(settings.auth_token_map),
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(vice_bank.router)
    app.include_router(notes.router)
    app.include_router(blog.router)
    app.include_router(files.router)
    app.include_router(budget.router)
    app.include_router(backup.router)

    return app


app = create_app()
