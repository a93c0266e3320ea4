"""
Platebase — FastAPI Application Factory
=========================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() registers middleware, exception handlers and routers and
       returns the app; uvicorn serves the module-level `app`.

    uvicorn platebase.main:app

Application Architecture:
    Middleware chain:  Request ID → Logging → GZip → CORS → route
    Routes:            /dishes (list, create-or-replace, get, update, delete)
                       /health
    Exception handlers:
        ValidationFailedError / RequestValidationError → 422
        NotFoundError                                  → 404
        UnexpectedError                                → 500 (message passed through)
        DatabaseError / Exception                      → 500 (generic message)

Lifecycle:
    Startup:  configure logging, log the effective settings
    Shutdown: dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, List

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from platebase import __version__
from platebase.config import settings
from platebase.database import dispose_engine
from platebase.exceptions import (
    DatabaseError,
    NotFoundError,
    UnexpectedError,
    ValidationFailedError,
)
from platebase.middleware.logging import RequestLoggingMiddleware
from platebase.middleware.request_id import RequestIDMiddleware, request_id_var
from platebase.routes import dishes, health

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Output: stdout (captured by Docker / the process supervisor)
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
        force=True,
    )

    # Library loggers that are noisy at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("multipart").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("Platebase %s starting up...", __version__)
    logger.info(
        "Photo limits: %d KB, types: %s",
        settings.max_photo_size_kb,
        ", ".join(settings.allowed_photo_extensions),
    )
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Platebase shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for consistent error responses.

    Handler hierarchy:
        ValidationFailedError   → 422 {"status": false, "message": {field: [errors]}}
        RequestValidationError  → 422 same shape (malformed path/query values)
        NotFoundError           → 404 {"message": "Dish not found"}
        UnexpectedError         → 500 {"status": false, "message": <error text>}
        DatabaseError           → 500 generic message, details logged
        Exception (fallback)    → 500 generic message, stack trace logged
    """

    @app.exception_handler(ValidationFailedError)
    async def handle_validation_failed(request: Request, exc: ValidationFailedError):
        rid = request_id_var.get("")
        logger.warning("[%s] Validation failed: %s", rid, exc.errors)
        return JSONResponse(
            status_code=422,
            content={"status": False, "message": exc.errors},
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        rid = request_id_var.get("")
        errors: Dict[str, List[str]] = {}
        for error in exc.errors():
            loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
            field = loc[-1] if loc else "request"
            errors.setdefault(field, []).append(error.get("msg", "Invalid value"))
        logger.warning("[%s] Request rejected by schema: %s", rid, errors)
        return JSONResponse(
            status_code=422,
            content={"status": False, "message": errors},
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return JSONResponse(
            status_code=404,
            content={"message": exc.message},
        )

    @app.exception_handler(UnexpectedError)
    async def handle_unexpected(request: Request, exc: UnexpectedError):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected failure: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={"status": False, "message": exc.message},
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={"status": False, "message": exc.message},
        )

    @app.exception_handler(Exception)
    async def handle_unhandled_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unhandled error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "status": False,
                "message": "An unexpected error occurred. Please try again later.",
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Platebase API",
        description="Manage dishes: name, price and an optional photo.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Middleware executes in reverse order of addition
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    # Photo-heavy list responses compress well
    app.add_middleware(GZipMiddleware, minimum_size=500)

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(dishes.router)
    app.include_router(health.router)

    return app


app = create_app()
