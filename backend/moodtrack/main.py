"""
MoodTrack Backend — FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() registers middleware, exception handlers and routers;
       lifespan() owns startup and shutdown of shared resources.
Who:   uvicorn (`uvicorn moodtrack.main:app`) and the test suite.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌──────────┐ ┌──────┐ ┌──────┐        │
    │  │  Req ID  │→│ Logging  │→│ GZip │→│ CORS │        │
    │  └──────────┘ └──────────┘ └──────┘ └──────┘        │
    │                                                     │
    │  Routes:                                            │
    │  /api/auth/*   /api/checkin   /api/meditation/*     │
    │  /health                                            │
    │                                                     │
    │  Exception Handlers:                                │
    │  MoodTrackError → status/code from the class        │
    │  RequestValidationError → 400 / 40002               │
    │  Exception → 500 / 5000                             │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → config check → music dir → sync_indexes → hashing pool
    Shutdown: hashing pool → music HTTP client → database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from moodtrack import __version__
from moodtrack.config import settings
from moodtrack.database import dispose_engine, engine
from moodtrack.exceptions import (
    UNEXPECTED_ERROR_CODE,
    CircuitBreakerOpenError,
    InfrastructureError,
    MoodTrackError,
    MusicServiceError,
    ValidationError,
)
from moodtrack.middleware.logging import RequestLoggingMiddleware
from moodtrack.middleware.request_id import RequestIDMiddleware, request_id_var
from moodtrack.models import sync_indexes
from moodtrack.routes import auth, checkins, health, meditation
from moodtrack.schemas.common import ErrorResponse
from moodtrack.services.music_service import music_service
from moodtrack.services.password_service import password_service

logger = logging.getLogger(__name__)

GENERIC_SERVER_ERROR_MESSAGE = "An internal error occurred. Please try again later."


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════


def setup_logging() -> None:
    """
    Configure the root logger once, before anything else logs.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries log every operation at INFO/DEBUG
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("MoodTrack Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: health checks and non-music routes still work
        logger.error("Configuration error: %s", str(e))

    music_dir = music_service.ensure_music_dir()
    logger.info("Music directory: %s", music_dir.resolve())

    await sync_indexes(engine)

    password_service.start()

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("MoodTrack Backend shutting down...")
    password_service.shutdown()
    await music_service.aclose()
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════


def current_request_id(request: Request) -> str:
    return request_id_var.get("") or getattr(request.state, "request_id", "")


def error_response(
    status_code: int,
    message: str,
    code: int,
    request_id: str,
    details: Any = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    body = ErrorResponse(message=message, error=code, details=details, request_id=request_id)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
        headers=headers,
    )


def validation_details(errors: List[Dict[str, Any]]) -> List[Dict[str, str]]:
    """Flatten pydantic error dicts to `{field, message}` pairs."""
    details = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query")]
        details.append({"field": ".".join(loc), "message": error.get("msg", "Invalid value")})
    return details


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to the error body `{success, message, error, request_id}`.

    Client errors (4xx) echo their message. Infrastructure errors (5xx) log
    message and context and answer with a generic message.
    """

    @app.exception_handler(MoodTrackError)
    async def handle_app_error(request: Request, exc: MoodTrackError):
        rid = current_request_id(request)
        headers = {}
        if isinstance(exc, CircuitBreakerOpenError):
            headers["Retry-After"] = str(exc.recovery_time)
        elif isinstance(exc, MusicServiceError) and exc.retry_after:
            headers["Retry-After"] = str(exc.retry_after)

        if isinstance(exc, InfrastructureError):
            logger.error(
                "[%s] %s (%d): %s | Context: %s",
                rid,
                type(exc).__name__,
                exc.error_code,
                exc.message,
                exc.context,
            )
            message = exc.message if isinstance(exc, CircuitBreakerOpenError) else GENERIC_SERVER_ERROR_MESSAGE
            return error_response(exc.status_code, message, exc.error_code, rid, headers=headers)

        logger.warning("[%s] %s (%d): %s", rid, type(exc).__name__, exc.error_code, exc.message)
        field = exc.context.get("field") if isinstance(exc, ValidationError) else None
        return error_response(
            exc.status_code,
            exc.message,
            exc.error_code,
            rid,
            details=[{"field": field, "message": exc.message}] if field else None,
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        rid = current_request_id(request)
        details = validation_details(exc.errors())
        first = details[0] if details else {"field": "", "message": "Invalid request"}
        message = f"{first['field']}: {first['message']}" if first["field"] else first["message"]
        logger.warning("[%s] Request validation failed: %s", rid, details)
        return error_response(400, message, ValidationError.error_code, rid, details=details)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = current_request_id(request)
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return error_response(500, GENERIC_SERVER_ERROR_MESSAGE, UNEXPECTED_ERROR_CODE, rid)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════


def create_app() -> FastAPI:
    app = FastAPI(
        title="MoodTrack API",
        description="Mood check-ins, account management and meditation music generation.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Last added runs first: RequestID → Logging → GZip → CORS
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
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(checkins.router)
    app.include_router(meditation.router)
    app.include_router(health.router)

    return app


app = create_app()
