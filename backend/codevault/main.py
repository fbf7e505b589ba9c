"""
CodeVault Backend — FastAPI Application Factory
================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn codevault.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────────────┐
    │                         FastAPI App                          │
    │                                                              │
    │  Middleware Chain (outermost first):                         │
    │  Rate Limit → Request ID → Logging → GZip → Security Headers │
    │            → Origin Allow-List → CORS                        │
    │                                                              │
    │  Routes:                                                     │
    │  /api/ai  /api/youtube  /api/github  /api/auth               │
    │  /api/snippets  /api/tags  /api/notes  /api/files            │
    │  /api/learning  /api/reviews  /api/profile  /api/realtime    │
    │  /health   and the SPA fallback (last)                       │
    │                                                              │
    │  Exception Handlers:                                         │
    │  CodeVaultError → its status │ schema → 400 │ other → 500    │
    └──────────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging, warnings for unconfigured features, storage directory
    Shutdown: dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from codevault import __version__
from codevault.config import settings
from codevault.database import dispose_engine
from codevault.exceptions import CodeVaultError, RateLimitExceededError
from codevault.middleware.cors import OriginAllowListMiddleware
from codevault.middleware.logging import RequestLoggingMiddleware
from codevault.middleware.rate_limit import RateLimitMiddleware
from codevault.middleware.request_id import RequestIDMiddleware, request_id_var
from codevault.middleware.security_headers import SecurityHeadersMiddleware
from codevault.routes import (
    ai,
    auth,
    frontend,
    github,
    health,
    learning,
    notes,
    profiles,
    realtime,
    reviews,
    snippets,
    tags,
    youtube,
)

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during startup, before anything else logs.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Chatty third-party loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("CodeVault Backend %s starting up (%s)", __version__, settings.environment)

    # Missing keys only degrade the endpoints that need them
    for warning in settings.startup_warnings():
        logger.warning(warning)

    storage = Path(settings.storage_root)
    storage.mkdir(parents=True, exist_ok=True)
    logger.info("Storage directory: %s", storage.resolve())
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.port)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("CodeVault Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_body(message: str, details=None) -> dict:
    """`{"error": ..., "details"?: ..., "request_id"?: ...}`, the one error shape of the API."""
    body = {"error": message}
    if details is not None:
        body["details"] = details
    rid = request_id_var.get("")
    if rid:
        body["request_id"] = rid
    return body


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid value")
    return f"{location}: {message}" if location else message


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to the JSON error shape.

    Handler hierarchy:
        CodeVaultError          → exc.status_code (400/401/403/404/409/413/429/500/upstream)
        RequestValidationError  → 400
        StarletteHTTPException  → its status (framework 404/405)
        Exception (fallback)    → 500 "Internal server error"

    Stack traces and store internals are logged server-side only.
    """

    @app.exception_handler(CodeVaultError)
    async def handle_codevault_error(request: Request, exc: CodeVaultError):
        rid = request_id_var.get("")
        if exc.status_code >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
        else:
            logger.warning("[%s] %s: %s", rid, type(exc).__name__, exc.message)

        headers = {}
        if isinstance(exc, RateLimitExceededError):
            headers["Retry-After"] = str(exc.retry_after)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.message, exc.details),
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        message = _validation_message(exc)
        logger.warning("[%s] Request validation failed: %s", request_id_var.get(""), message)
        return JSONResponse(status_code=400, content=error_body(message))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, exc, exc_info=True)
        return JSONResponse(status_code=500, content=error_body("Internal server error"))


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """Assemble middleware, exception handlers and routers into a FastAPI app."""
    app = FastAPI(
        title="CodeVault API",
        description=(
            "Personal code-snippet library with AI-suggested metadata, learning "
            "resources, PDF notes and product reviews."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Middleware executes in REVERSE order of addition (last added runs first)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Analysis-Status", "Retry-After"],
    )
    app.add_middleware(OriginAllowListMiddleware, allowed_origins=settings.cors_origins_list)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(health.router)
    app.include_router(ai.router)
    app.include_router(youtube.router)
    app.include_router(github.router)
    app.include_router(auth.router)
    app.include_router(snippets.router)
    app.include_router(tags.router)
    app.include_router(notes.router)
    app.include_router(learning.router)
    app.include_router(reviews.router)
    app.include_router(profiles.router)
    app.include_router(realtime.router)
    # Catch-all GET; must stay last
    app.include_router(frontend.router)

    return app


# uvicorn expects `codevault.main:app` to be importable
app = create_app()
