"""FastAPI application factory."""

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from fee_gateway.api.errors import register_error_handlers
from fee_gateway.api.fees import router as fees_router
from fee_gateway.app_logging import configure_logging
from fee_gateway.config import VERSION
from fee_gateway.containers import AppContainer
from fee_gateway.services.warmup import build_scheduler
from fee_gateway.telemetry import configure_tracing, instrument_app, shutdown_tracing

READY_CHECK_KEY = "_ready_check"


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)
    settings = container.settings
    configure_tracing(settings)
    started_at = time.monotonic()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        state_container: AppContainer = app.state.container
        scheduler = None
        if state_container.settings.cron_enabled:
            scheduler = build_scheduler(state_container.warmup_job)
            scheduler.start()
            logger.info("Scheduled cache warmup job")
        yield
        if scheduler is not None:
            scheduler.shutdown(wait=False)
        await state_container.close_resources()
        shutdown_tracing()

    app = FastAPI(
        title="Fee Gateway",
        version=VERSION,
        docs_url="/swagger",
        lifespan=lifespan,
    )
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.cors_origin],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(
        app, expose_internal_errors=settings.environment != "production"
    )
    app.include_router(fees_router)
    instrument_app(app)

    @app.get("/", tags=["Info"])
    async def index() -> dict[str, object]:
        """Describe the service and its endpoints."""
        return {
            "name": "Bridge Fee Gateway",
            "version": VERSION,
            "docs": "/swagger",
            "endpoints": {
                "health": "/health",
                "ready": "/ready",
                "fees": "/api/suggested-fees",
                "limits": "/api/limits",
            },
        }

    @app.get("/health", tags=["Health"], summary="Health check")
    async def health() -> dict[str, object]:
        """Check if the API is healthy."""
        return {
            "status": "healthy",
            "timestamp": _timestamp(),
            "uptime": time.monotonic() - started_at,
            "cache": "connected",
        }

    @app.get("/ready", tags=["Health"], summary="Readiness check")
    async def ready(request: Request) -> dict[str, object]:
        """Check that the cache accepts writes and serves them back."""
        state_container: AppContainer = request.app.state.container
        cache = state_container.cache
        try:
            await cache.set(READY_CHECK_KEY, "ok", 10)
        except Exception as exc:
            logger.exception("Readiness check failed")
            return {
                "status": "not_ready",
                "cache": "error",
                "error": str(exc) or type(exc).__name__,
                "timestamp": _timestamp(),
            }
        value = await cache.get(READY_CHECK_KEY)
        return {
            "status": "ready",
            "cache": "connected" if value == "ok" else "error",
            "timestamp": _timestamp(),
        }

    return app


def _timestamp() -> str:
    return datetime.now(tz=UTC).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )
