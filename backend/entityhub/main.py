"""
EntityHub Backend — FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes app configuration, middleware registration, router mounting,
       and lifecycle management in one place.
How:   Factory pattern: create_app() returns a configured FastAPI instance with
       one generated CRUD router per registered entity.
Who:   Called by uvicorn to start the server (uvicorn entityhub.main:app).

Application Architecture:
    ┌─────────────────────────────────────────────────────────┐
    │                      FastAPI App                        │
    │                                                         │
    │  Middleware Chain:                                      │
    │  ┌──────────┐ ┌─────────────────┐ ┌──────┐ ┌────────┐   │
    │  │  Req ID  │→│  Access logging │→│ GZip │→│  CORS  │   │
    │  └──────────┘ └─────────────────┘ └──────┘ └────────┘   │
    │                                                         │
    │  Routers:                                               │
    │  ┌──────────────┐ ┌──────────────────────┐ ┌─────────┐  │
    │  │ /admin/blog  │ │ /device/api/v1/task  │ │ /health │  │
    │  └──────────────┘ └──────────────────────┘ └─────────┘  │
    │                                                         │
    │  Exception Handlers:                                    │
    │  ┌───────────────────────────────────────────────────┐  │
    │  │ BadRequest→400 │ Validation→422 │ NotFound→404    │  │
    │  │ Database→500   │ Exception→500                    │  │
    │  └───────────────────────────────────────────────────┘  │
    └─────────────────────────────────────────────────────────┘
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from entityhub import __version__
from entityhub.config import settings
from entityhub.database import dispose_engine
from entityhub.entities import ENTITIES
from entityhub.exceptions import (
    BadRequestError,
    DatabaseError,
    NotFoundError,
    ValidationError,
)
from entityhub.middleware.logging import RequestLoggingMiddleware
from entityhub.middleware.request_id import RequestIDMiddleware, request_id_var
from entityhub.responses import (
    bad_request,
    internal_server_error,
    record_not_found,
    validation_error,
)
from entityhub.routes import health
from entityhub.routes.crud import build_entity_router

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Access lines come from the `entityhub.access` logger (request middleware).
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers are noisy at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: logging and a route summary. Shutdown: dispose the engine."""
    setup_logging()
    logger.info("=" * 60)
    logger.info("EntityHub Backend %s starting up...", __version__)
    for entity in ENTITIES.values():
        logger.info("Serving %s at %s", entity.name, entity.prefix)
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("EntityHub Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to the fixed response envelopes.

    Handler table:
        BadRequestError         → 400 BAD_REQUEST
        ValidationError         → 422 VALIDATION_ERROR
        RequestValidationError  → 422 VALIDATION_ERROR (body is not JSON / not an object)
        NotFoundError           → 404 RECORD_NOT_FOUND
        DatabaseError           → 500 FAILURE (store message passed through)
        Exception (fallback)    → 500 FAILURE

    Context dicts are logged server-side only.
    """

    @app.exception_handler(BadRequestError)
    async def handle_bad_request(request: Request, exc: BadRequestError):
        rid = request_id_var.get("")
        logger.info("[%s] Bad request on %s: %s", rid, request.url.path, exc.message)
        return bad_request(exc.message)

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        rid = request_id_var.get("")
        logger.warning("[%s] Validation error: %s | Context: %s", rid, exc.message, exc.context)
        return validation_error(exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        rid = request_id_var.get("")
        errors = exc.errors()
        logger.warning("[%s] Request rejected by FastAPI: %s", rid, errors)
        message = errors[0].get("msg") if errors else None
        return validation_error(message)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        rid = request_id_var.get("")
        logger.info("[%s] No record matched: %s", rid, exc.context)
        return record_not_found(exc.message)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return internal_server_error(exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return internal_server_error(str(exc) or None)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns: Fully configured FastAPI instance ready to receive requests.
    """
    app = FastAPI(
        title="EntityHub API",
        description=(
            "Generated CRUD endpoints for Blog and Task records: create, bulk insert, "
            "filtered paginated listing, counting, updates, soft and hard deletes."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Executes in reverse order of addition: RequestID → Logging → GZip → CORS
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
    for entity in ENTITIES.values():
        app.include_router(build_entity_router(entity))
    app.include_router(health.router)

    return app


# ── Application Instance ─────────────────────────────────────────────────
# uvicorn expects `entityhub.main:app` to be importable
app = create_app()
