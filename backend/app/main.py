"""
Tubely API - FastAPI Application Entry Point.

Builds the FastAPI application for the Tubely video ingestion service:
- Lifespan management: logging setup, MongoDB connect/close
- CORS middleware for the frontend
- Request logging middleware with timing headers
- Request body limit (413 on declared or streamed bodies past the limit)
- API v1 router registration under /api/v1
- Root and health endpoints
- JSON 404/500 handlers

Run locally with:
    uvicorn app.main:app --app-dir backend --reload
"""

import logging
import time

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

import uvicorn

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from app import __app_name__, __version__
from app.api.v1 import api_router
from app.config import get_settings
from app.core.database import close_db, init_db
from app.core.exceptions import PayloadTooLargeError
from app.utils.file_validator import format_file_size
from app.utils.logger import setup_logging


logger = logging.getLogger(__name__)

HTTP_ERROR_THRESHOLD = 400


# =============================================================================
# Request Body Limit
# =============================================================================


class RequestBodyTooLarge(HTTPException):
    """Raised from the wrapped ``receive`` once a body passes the limit."""

    def __init__(self, limit: int) -> None:
        error = PayloadTooLargeError(f"Request body exceeds the {format_file_size(limit)} limit")
        super().__init__(
            status_code=error.status_code,
            detail={"error": error.error_code, "message": error.client_message},
        )


class RequestBodyLimitMiddleware:
    """
    Bound every request body at the transport boundary.

    A declared Content-Length over the limit is answered with 413 before the
    body is read. Otherwise ``receive`` is wrapped and the bytes of each
    ``http.request`` message are counted, so chunked bodies stop being read
    as soon as they pass the limit. The limit is read from settings per
    request.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        limit = get_settings().max_request_body_bytes
        content_length = Headers(scope=scope).get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > limit:
            logger.info(
                "Rejected oversized request: %s %s",
                scope["method"],
                scope["path"],
                extra={"content_length": int(content_length), "limit": limit},
            )
            await self._reject(RequestBodyTooLarge(limit), scope, receive, send)
            return

        received = 0
        response_started = False

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > limit:
                    logger.info(
                        "Stopped reading oversized request: %s %s",
                        scope["method"],
                        scope["path"],
                        extra={"received": received, "limit": limit},
                    )
                    raise RequestBodyTooLarge(limit)
            return message

        async def tracking_send(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, limited_receive, tracking_send)
        except RequestBodyTooLarge as exc:
            if response_started:
                raise
            await self._reject(exc, scope, receive, send)

    @staticmethod
    async def _reject(
        exc: RequestBodyTooLarge, scope: Scope, receive: Receive, send: Send
    ) -> None:
        response = JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})
        await response(scope, receive, send)


# =============================================================================
# Application Lifespan Management
# =============================================================================


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """
    Configure logging and connect to MongoDB on startup; disconnect on shutdown.

    Startup fails if MongoDB cannot be reached, since no endpoint can serve
    a request without the metadata store.
    """
    settings = get_settings()

    setup_logging(log_level=settings.log_level, json_logs=settings.json_logs)

    logger.info(
        "%s API starting",
        settings.app_name,
        extra={
            "environment": settings.app_env,
            "host": settings.host,
            "port": settings.port,
            "bucket": settings.s3_bucket_name,
        },
    )

    try:
        await init_db(settings)
    except Exception as e:
        logger.exception("Failed to initialize MongoDB")
        raise RuntimeError(f"MongoDB initialization failed: {e}") from e

    logger.info("%s API ready to accept requests", settings.app_name)

    yield

    try:
        await close_db()
    except Exception:
        logger.exception("Error closing MongoDB connection")

    logger.info("%s API shutdown complete", settings.app_name)


# =============================================================================
# FastAPI Application Instance
# =============================================================================

_settings = get_settings()

app = FastAPI(
    title=f"{__app_name__} API",
    description=(
        "Video ingestion for Tubely: MP4 uploads are validated, remuxed for fast start, "
        "stored in S3-compatible object storage and served through presigned URLs."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
    debug=_settings.debug,
)


# =============================================================================
# Middleware Configuration
# =============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Process-Time"],
)

app.add_middleware(RequestBodyLimitMiddleware)


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next) -> Response:
    """Log each request with its status and duration; add timing headers."""
    request_id = f"{time.time_ns()}"
    start_time = time.perf_counter()

    logger.debug("Request started: %s %s", request.method, request.url.path)

    try:
        response = await call_next(request)
    except Exception:
        logger.exception(
            "Request failed: %s %s",
            request.method,
            request.url.path,
            extra={"request_id": request_id},
        )
        raise

    process_time_ms = round((time.perf_counter() - start_time) * 1000, 2)
    response.headers["X-Process-Time"] = f"{process_time_ms}ms"
    response.headers["X-Request-ID"] = request_id

    log_level = logging.DEBUG if response.status_code < HTTP_ERROR_THRESHOLD else logging.WARNING
    logger.log(
        log_level,
        "Request completed: %s %s",
        request.method,
        request.url.path,
        extra={
            "status_code": response.status_code,
            "process_time_ms": process_time_ms,
            "request_id": request_id,
        },
    )

    return response


# =============================================================================
# API Router Registration
# =============================================================================

app.include_router(api_router, prefix="/api/v1")


# =============================================================================
# Core Endpoints
# =============================================================================


@app.get("/", tags=["root"], summary="API information")
async def root() -> dict[str, Any]:
    """Service name, version and documentation path."""
    return {
        "name": f"{__app_name__} API",
        "version": __version__,
        "description": "Video ingestion and playback URL service",
        "docs": "/docs",
    }


@app.get("/health", tags=["health"], summary="Health check")
async def health_check() -> dict[str, Any]:
    """
    Liveness probe for container orchestration.

    Returns immediately without touching MongoDB or object storage.
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now(UTC).isoformat(),
        "service": f"{__app_name__} Backend",
        "version": __version__,
    }


# =============================================================================
# Exception Handlers
# =============================================================================


@app.exception_handler(404)
async def not_found_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    JSON body for 404 responses.

    Errors raised by endpoints already carry a structured detail and are
    passed through; unmatched routes get a path-specific message.
    """
    if isinstance(exc, StarletteHTTPException) and isinstance(exc.detail, dict):
        return JSONResponse(status_code=404, content={"detail": exc.detail}, headers=exc.headers)

    return JSONResponse(
        status_code=404,
        content={
            "error": "Not Found",
            "message": f"The requested path '{request.url.path}' was not found",
            "status_code": 404,
            "path": str(request.url.path),
        },
    )


@app.exception_handler(500)
async def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unhandled errors and return a generic message."""
    logger.error(
        "Internal server error on %s %s: %s",
        request.method,
        request.url.path,
        str(exc),
        exc_info=exc,
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "message": "An unexpected error occurred. Please try again later.",
            "status_code": 500,
        },
    )


if __name__ == "__main__":
    uvicorn.run(
        "app.main:app",
        host=_settings.host,
        port=_settings.port,
        reload=_settings.debug,
        log_level=_settings.log_level,
    )
