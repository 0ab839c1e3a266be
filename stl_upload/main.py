"""FastAPI application entry point."""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from stl_upload.config import settings
from stl_upload.middleware import BodySizeLimitMiddleware
from stl_upload.services.drive_client import build_drive_client
from stl_upload.services.google_auth import CredentialsError

# ---------------------------------------------------------------------------
# Structured logging configuration
# ---------------------------------------------------------------------------

structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(),
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=True,
)

logging.basicConfig(
    format="%(message)s",
    stream=sys.stdout,
    level=logging.INFO,
)

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Drive client lifecycle
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Built once and shared read-only by every request.
    if getattr(app.state, "drive_client", None) is None:
        try:
            app.state.drive_client = build_drive_client(settings)
        except CredentialsError as exc:
            logger.error("drive_client_unavailable", error=str(exc))
            app.state.drive_client = None
    yield


# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------

app = FastAPI(
    title=settings.service_name,
    description=(
        "Relays STL files sent by the web shop into Google Drive, one dated folder per "
        "customer order, and returns shareable view/download links."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(BodySizeLimitMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


# ---------------------------------------------------------------------------
# Error responses are always {"error": "..."}
# ---------------------------------------------------------------------------

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request body") if errors else "Invalid request body"
    logger.info("request_invalid", path=request.url.path, error=message)
    return JSONResponse(status_code=400, content={"error": f"Invalid request body: {message}"})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("unhandled_error", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=500, content={"error": str(exc) or "Internal server error"})


# ---------------------------------------------------------------------------
# Mount routers
# ---------------------------------------------------------------------------

from stl_upload.routers.auth import router as auth_router
from stl_upload.routers.uploads import router as uploads_router

app.include_router(uploads_router)
app.include_router(auth_router)


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

@app.get("/", tags=["system"])
async def root():
    """Static status payload."""
    return {"status": "ok", "service": settings.service_name}


@app.get("/health", tags=["system"])
async def health_check(request: Request):
    """Health check endpoint."""
    return {
        "status": "ok",
        "service": settings.service_name,
        "auth_mode": settings.google_auth_mode.value,
        "drive_configured": getattr(request.app.state, "drive_client", None) is not None,
    }
