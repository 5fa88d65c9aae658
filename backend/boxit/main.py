"""
BoxIT Backend — FastAPI Application Factory
============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() builds the collaborators (database, image storage, email
       sender, QR renderer), puts them on app.state for the dependencies in
       boxit/dependencies.py, then registers middleware, exception handlers
       and routers. Tests pass their own settings or collaborators.
Who:   uvicorn boxit.main:app

Application Layout:
    Middleware:  Request ID → Rate Limit → Logging → GZip → CORS
    Routes:      /api/auth, /api/storage-rooms, /api/boxes, /api/items,
                 /api/labels, /api/search, /api/public, /api/files, /health
    Errors:      BoxITError subclasses → their own status and kind
                 request validation → 422 invalid_input
                 IntegrityError → 409 conflict
                 other database errors → 503 upstream_failure
                 anything else → 500 internal_error

Lifecycle:
    Startup:   logging, configuration check, optional table creation
    Shutdown:  release the storage and email backends, dispose
               the database engine
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
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from boxit import __version__
from boxit.config import Settings, settings as default_settings
from boxit.database import Database
from boxit.exceptions import BoxITError
from boxit.middleware.logging import RequestLoggingMiddleware
from boxit.middleware.rate_limit import RateLimitMiddleware
from boxit.middleware.request_id import RequestIDMiddleware, request_id_var
from boxit.routes import auth, boxes, files, health, items, labels, public, search, storage_rooms
from boxit.services.cloudinary_storage import CloudinaryImageStorage
from boxit.services.email_service import EmailSender, build_email_sender
from boxit.services.local_storage import LocalImageStorage
from boxit.services.qr_service import QRRenderer
from boxit.services.storage_base import ImageStorage

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger once, writing to stdout."""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Per-operation chatter from these libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("cloudinary").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)


# ══════════════════════════════════════════════════════════════════════════
# Collaborators
# ══════════════════════════════════════════════════════════════════════════

def build_storage(settings: Settings) -> ImageStorage:
    if settings.storage_backend == "cloudinary":
        return CloudinaryImageStorage(settings)
    return LocalImageStorage(settings.storage_root, max_dimension=settings.image_max_dimension)


# ══════════════════════════════════════════════════════════════════════════
# Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings: Settings = app.state.settings

    setup_logging(settings.log_level)
    logger.info("BoxIT Backend %s starting up (storage=%s, email=%s)",
                __version__, app.state.storage.name, settings.email_backend)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving so /health and the logs can show the problem.
        logger.error("%s", str(e))

    if settings.db_auto_create:
        await app.state.database.create_all()

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    logger.info("BoxIT Backend shutting down...")
    await app.state.storage.aclose()
    await app.state.email_sender.aclose()
    await app.state.database.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(status_code: int, kind: str, message: str, details=None) -> JSONResponse:
    content = {"error": kind, "message": message, "request_id": request_id_var.get("")}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map failures to the common error body:
        {"error": kind, "message": ..., "details": ..., "request_id": ...}

    Only InvalidInputError and request validation failures carry details;
    the context of every other error is logged and withheld.
    """

    @app.exception_handler(BoxITError)
    async def handle_boxit_error(request: Request, exc: BoxITError):
        rid = request_id_var.get("")
        if exc.status_code >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, exc.kind, exc.message, exc.context)
        else:
            logger.info("[%s] %s: %s | Context: %s", rid, exc.kind, exc.message, exc.context)
        details = exc.context if exc.expose_context else None
        return _error_response(exc.status_code, exc.kind, exc.message, details)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        details = [
            {
                "loc": [str(part) for part in error.get("loc", ())],
                "msg": error.get("msg", ""),
                "type": error.get("type", ""),
            }
            for error in exc.errors()
        ]
        return _error_response(422, "invalid_input", "Request validation failed", details)

    @app.exception_handler(IntegrityError)
    async def handle_integrity_error(request: Request, exc: IntegrityError):
        logger.warning("[%s] Integrity error: %s", request_id_var.get(""), str(exc.orig))
        return _error_response(409, "conflict", "The request conflicts with existing data")

    @app.exception_handler(SQLAlchemyError)
    async def handle_database_error(request: Request, exc: SQLAlchemyError):
        logger.error("[%s] Database error: %s", request_id_var.get(""), str(exc), exc_info=True)
        return _error_response(
            503, "upstream_failure", "The database is temporarily unavailable. Please try again later."
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", request_id_var.get(""), str(exc), exc_info=True)
        return _error_response(
            500, "internal_error", "An unexpected error occurred. Please try again later."
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    settings: Optional[Settings] = None,
    *,
    database: Optional[Database] = None,
    storage: Optional[ImageStorage] = None,
    email_sender: Optional[EmailSender] = None,
    qr_renderer: Optional[QRRenderer] = None,
) -> FastAPI:
    """Assemble the application; any collaborator left as None is built from settings."""
    settings = settings or default_settings

    app = FastAPI(
        title="BoxIT API",
        description=(
            "Household inventory: storage rooms, boxes with QR labels, and the "
            "items, photos and labels inside them."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.database = database or Database.from_settings(settings)
    app.state.storage = storage or build_storage(settings)
    app.state.email_sender = email_sender or build_email_sender(settings)
    app.state.qr_renderer = qr_renderer or QRRenderer(settings.qr_image_size, settings.qr_margin)

    # ── Middleware ────────────────────────────────────────────────────────
    # Last added runs first.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RateLimitMiddleware, settings=settings)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    # ── Routes ────────────────────────────────────────────────────────────
    app.include_router(auth.router)
    app.include_router(storage_rooms.router)
    app.include_router(boxes.router)
    app.include_router(items.router)
    app.include_router(labels.router)
    app.include_router(search.router)
    app.include_router(public.router)
    app.include_router(files.router)
    app.include_router(health.router)

    return app


app = create_app()
