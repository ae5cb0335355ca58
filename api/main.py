"""
FastAPI application for the portfolio manager.

Exposes stocks, bonds, cash flow and portfolio analytics under /api with
auto-generated OpenAPI documentation at /docs.

Run with:
    python main.py serve
    uvicorn api.main:app --port 5000
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.middleware import (
    RateLimitMiddleware,
    SecurityHeadersMiddleware,
    UnhandledErrorMiddleware,
    server_error_response,
)
from api.routes import ROUTERS
from api.schemas import HealthResponse
from config import ServerConfig, config
from db import init_db
from services.errors import RecordNotFoundError, RecordValidationError


logger = logging.getLogger(__name__)


def _first_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    error = errors[0]
    loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
    return f"{'.'.join(loc)}: {error['msg']}" if loc else error["msg"]


def register_exception_handlers(app: FastAPI, server: ServerConfig) -> None:
    """Map failures onto {"message": ...} JSON bodies."""

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"message": _first_error(exc)})

    @app.exception_handler(RecordValidationError)
    async def record_invalid(request: Request, exc: RecordValidationError):
        return JSONResponse(status_code=400, content={"message": str(exc)})

    @app.exception_handler(RecordNotFoundError)
    async def record_not_found(request: Request, exc: RecordNotFoundError):
        return JSONResponse(status_code=404, content={"message": str(exc)})

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        message = "Route not found" if exc.status_code == 404 else str(exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"message": message})

    # Route errors are caught by UnhandledErrorMiddleware; this covers the middleware stack itself
    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return server_error_response(exc, server.is_development)


def create_app(server: ServerConfig | None = None, db_url: str | None = None) -> FastAPI:
    """
    Build the API application.

    Args:
        server: Server settings (defaults to config.server)
        db_url: Database URL used at startup (defaults to config.database.url)

    Returns:
        Configured FastAPI app. Tables and the default user are created
        when the app starts.
    """
    server = server or config.server

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        init_db(db_url)
        logger.info("Single-user portfolio management system ready")
        yield

    app = FastAPI(
        title=server.api_title,
        description=server.api_description,
        version=server.api_version,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Last added runs first
    app.add_middleware(UnhandledErrorMiddleware, expose_errors=server.is_development)
    if server.rate_limit_enabled:
        app.add_middleware(
            RateLimitMiddleware,
            max_requests=server.rate_limit_max_requests,
            window_seconds=server.rate_limit_window_seconds,
        )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[server.frontend_origin],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware)

    register_exception_handlers(app, server)

    for router in ROUTERS:
        app.include_router(router, prefix="/api")

    @app.get("/api/health", response_model=HealthResponse, tags=["Health"])
    def health():
        """Liveness check."""
        return {
            "status": "OK",
            "timestamp": datetime.now(timezone.utc),
            "mode": "single-user",
        }

    return app


app = create_app()
