#!/usr/bin/env python3
"""
Halaqah API - HTTP API layer for the study-circle administration system.

This is the main FastAPI application that serves as the backend-for-frontend (BFF)
for the admin interface. It orchestrates:
- Roster ingestion, import and editing
- Batch attendance recording
- Monthly progress records
- Reports and dashboard statistics
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from halaqah.core.errors import (
    HalaqahError,
    NotFoundError,
    ReconcileError,
    RemoteStoreError,
    SubmissionInProgressError,
    ValidationError,
)
from halaqah.logging_config import configure_logging, get_logger

from .dependencies import authenticate_pb
from .settings import get_settings

# Configure unified logging format
# Format: 2026-01-06T14:05:52Z [api] LEVEL message
configure_logging(source="api")
logger = get_logger(__name__)


def error_status(exc: HalaqahError) -> int:
    """HTTP status for an engine error."""
    if isinstance(exc, ValidationError):
        return 422
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, SubmissionInProgressError):
        return 409
    if isinstance(exc, RemoteStoreError | ReconcileError):
        return 502
    return 500


def error_body(exc: HalaqahError) -> dict[str, object]:
    body: dict[str, object] = {"detail": str(exc), "error": type(exc).__name__}
    if isinstance(exc, ValidationError):
        if exc.row_number is not None:
            body["row"] = exc.row_number
        if exc.field is not None:
            body["field"] = exc.field
    elif isinstance(exc, RemoteStoreError) and exc.status is not None:
        body["store_status"] = exc.status
    elif isinstance(exc, ReconcileError):
        body["partial"] = exc.result.to_dict()
    return body


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifecycle - startup and shutdown."""
    settings = get_settings()

    # Startup
    if settings.storage_backend == "memory":
        logger.warning("STORAGE_BACKEND=memory - PocketBase is not used")
    elif not settings.skip_pb_auth:
        await authenticate_pb()
    else:
        logger.warning("Skipping PocketBase authentication (SKIP_PB_AUTH=true)")

    yield


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(title="Halaqah API", description="Study-circle roster and attendance API", lifespan=lifespan)

    # Add exception handlers
    @app.exception_handler(HalaqahError)
    async def halaqah_error_handler(request: Request, exc: HalaqahError) -> JSONResponse:
        status = error_status(exc)
        if status >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {type(exc).__name__}: {exc}")
        else:
            logger.info(f"{request.method} {request.url.path} rejected ({status}): {exc}")
        return JSONResponse(status_code=status, content=error_body(exc))

    @app.exception_handler(401)
    async def unauthorized_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=401, content={"detail": str(exc.detail) if hasattr(exc, "detail") else "Unauthorized"}
        )

    # Load settings
    settings = get_settings()

    # CORS configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["*"],
    )

    # Register routers
    from .routers import attendance, auth, circles, dashboard, lookups, people, progress

    app.include_router(auth.router)
    app.include_router(lookups.router)
    app.include_router(people.router)
    app.include_router(circles.router)
    app.include_router(attendance.router)
    app.include_router(progress.router)
    app.include_router(dashboard.router)

    # Core endpoints (not in a router)
    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy", "service": "halaqah-api"}

    return app


# Create app instance for uvicorn
app = create_app()
