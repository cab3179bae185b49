"""FastAPI Application Factory.

Creates and configures the FastAPI application with all middleware,
exception handlers, routes, and lifecycle events.
"""

from __future__ import annotations

import time
import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from prometheus_client import make_asgi_app

from app.config import CORS_ALLOW_HEADERS, CORS_ALLOW_METHODS, get_settings
from app.exceptions import KeyCheckBaseError
from app.logging_config import get_logger, setup_logging
from app.metrics import APP_INFO, HTTP_REQUEST_DURATION, HTTP_REQUESTS_TOTAL
from services.key_validator import build_batch_validator
from services.providers import build_registry

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifecycle: startup and shutdown."""
    settings = get_settings()

    # Startup
    setup_logging()
    APP_INFO.info(
        {
            "version": settings.app_version,
            "environment": settings.environment.value,
        }
    )
    logger.info(
        "application_starting",
        version=settings.app_version,
        environment=settings.environment.value,
        providers=app.state.registry.ids(),
    )

    yield

    # Shutdown
    logger.info("application_stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Batch validity checks for OpenAI, Anthropic, Google and Mistral API keys",
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    # Provider table and validators are built once and shared read-only
    registry = build_registry(settings)
    app.state.registry = registry
    app.state.batch_validator = build_batch_validator(
        registry, timeout=settings.validation_timeout
    )

    # CORS - open to any browser origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=CORS_ALLOW_METHODS,
        allow_headers=CORS_ALLOW_HEADERS,
        expose_headers=["X-Request-ID"],
    )

    # Prometheus metrics endpoint
    if settings.metrics_enabled:
        metrics_app = make_asgi_app()
        app.mount("/metrics", metrics_app)

    # Request middleware
    @app.middleware("http")
    async def request_middleware(request: Request, call_next) -> Response:
        """Add request ID, timing, and metrics to every request."""
        request_id = str(uuid.uuid4())
        start_time = time.perf_counter()

        # Bind request context for structured logging
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        response: Response = await call_next(request)

        duration = time.perf_counter() - start_time
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration:.4f}"

        # Metrics
        endpoint = request.url.path
        HTTP_REQUESTS_TOTAL.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=response.status_code,
        ).inc()
        HTTP_REQUEST_DURATION.labels(
            method=request.method,
            endpoint=endpoint,
        ).observe(duration)

        return response

    # Exception handlers
    @app.exception_handler(KeyCheckBaseError)
    async def keycheck_error_handler(
        _request: Request, exc: KeyCheckBaseError
    ) -> PlainTextResponse:
        """Client-facing errors are returned as plain text."""
        logger.warning(
            "keycheck_error",
            code=exc.code,
            message=exc.message,
            status_code=exc.status_code,
        )
        return PlainTextResponse(exc.message, status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(_request: Request, exc: Exception) -> PlainTextResponse:
        """Handle unexpected exceptions without leaking internals."""
        logger.exception("unhandled_error", error_type=type(exc).__name__)
        # Sent from outside the CORS middleware, so the headers are set here
        return PlainTextResponse(
            "Internal Server Error", status_code=500, headers=settings.cors_headers()
        )

    # Register routes
    from api.v1.router import api_v1_router
    from api.v1.routes.keys import router as keys_router

    app.include_router(api_v1_router, prefix="/api/v1")
    # Unversioned path used by the static front end
    app.include_router(keys_router, include_in_schema=False)

    # Health endpoint (no prefix)
    @app.get("/health", tags=["System"])
    async def health_check() -> dict:
        """Basic health check."""
        return {
            "status": "healthy",
            "version": settings.app_version,
            "environment": settings.environment.value,
            "providers": registry.ids(),
        }

    return app


# Application instance
app = create_app()
