"""Fraud Case Tracker Service.

HTTP API for opening, assigning, escalating and closing fraud cases under
role-based permissions. Backed by PostgreSQL (``fraud_cases`` schema).
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from case_tracker.api.routes import api_router
from case_tracker.core.config import AppEnvironment, Settings, get_settings
from case_tracker.core.database import get_engine, reset_engine
from case_tracker.core.errors import (
    CaseTrackerError,
    ForbiddenError,
    NotFoundError,
    get_status_code,
)
from case_tracker.core.logging import setup_logging

logger = logging.getLogger(__name__)

API_V1_PREFIX = "/api/v1"

# Details of these could reveal which cases or users exist
SANITIZED_ERRORS = (ForbiddenError, NotFoundError)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    settings = get_settings()
    setup_logging(settings)
    app.state.settings = settings
    app.state.engine = get_engine()

    logger.info(
        "Fraud Case Tracker %s started (env=%s)",
        settings.app.version,
        settings.app.env.value,
    )
    try:
        yield
    finally:
        await reset_engine()
        logger.info("Fraud Case Tracker stopped")


def error_response(exc: CaseTrackerError, settings: Settings) -> JSONResponse:
    """Render a domain error as ``{"detail": ..., "errors": {...}}``.

    ``errors`` is omitted when empty, and always omitted for 403/404 while
    ``SECURITY_SANITIZE_ERRORS`` is on.
    """
    details = exc.details
    if settings.security.sanitize_errors and isinstance(exc, SANITIZED_ERRORS):
        details = {}
    content: dict = {"detail": exc.message}
    if details:
        content["errors"] = details
    return JSONResponse(status_code=get_status_code(exc), content=content)


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(CaseTrackerError)
    async def handle_domain_error(  # type: ignore[reportUnusedFunction]
        request: Request, exc: CaseTrackerError
    ) -> JSONResponse:
        logger.info(
            "%s %s rejected with %s: %s",
            request.method,
            request.url.path,
            type(exc).__name__,
            exc.message,
        )
        return error_response(exc, settings)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(  # type: ignore[reportUnusedFunction]
        request: Request, exc: Exception
    ) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def setup_telemetry(app: FastAPI, settings: Settings) -> None:
    """Export traces over OTLP when ``OTEL_OTLP_ENDPOINT`` is set."""
    if not settings.observability.otlp_endpoint:
        return

    provider = TracerProvider(
        resource=Resource(attributes={SERVICE_NAME: settings.observability.service_name})
    )
    provider.add_span_processor(
        BatchSpanProcessor(
            OTLPSpanExporter(
                endpoint=settings.observability.otlp_endpoint,
                insecure=settings.observability.otlp_insecure,
            )
        )
    )
    trace.set_tracer_provider(provider)
    FastAPIInstrumentor.instrument_app(app)


def create_app() -> FastAPI:
    """Build the FastAPI application."""
    settings = get_settings()
    expose_docs = settings.app.env != AppEnvironment.PROD

    app = FastAPI(
        title="Fraud Case Tracker API",
        description=(
            "Track fraud cases through their lifecycle with role-based permissions "
            "and an escalation audit trail."
        ),
        version=settings.app.version,
        lifespan=lifespan,
        docs_url="/docs" if expose_docs else None,
        redoc_url="/redoc" if expose_docs else None,
        openapi_url="/openapi.json" if expose_docs else None,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.security.cors_allowed_origins,
        allow_credentials=settings.security.cors_allow_credentials,
        allow_methods=settings.security.cors_allow_methods,
        allow_headers=settings.security.cors_allow_headers,
    )
    app.include_router(api_router, prefix=API_V1_PREFIX)
    register_exception_handlers(app, settings)
    setup_telemetry(app, settings)
    return app


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    settings = get_settings()
    local = settings.app.env == AppEnvironment.LOCAL
    uvicorn.run(
        "case_tracker.main:create_app",
        factory=True,
        host=settings.server.host,
        port=settings.server.port,
        reload=local,
        workers=1 if local else settings.server.workers,
        log_level=settings.app.log_level.value.lower(),
    )


if __name__ == "__main__":
    run()
