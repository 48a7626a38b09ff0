"""FastAPI application factory for journalcheck."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from journalcheck import __version__
from journalcheck.api.deps import init_session_manager, reset_session_manager
from journalcheck.api.middleware import (
    RequestBodyLimitMiddleware,
    RequestTimingMiddleware,
    SecurityHeadersMiddleware,
)
from journalcheck.api.routers import sessions
from journalcheck.api.schemas import HealthResponse
from journalcheck.service.session_manager import SessionManager
from journalcheck.settings import Settings

logger = logging.getLogger("journalcheck.api")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Start/stop the SessionManager alongside the application."""
    settings: Settings = app.state.settings
    mgr = SessionManager(
        ttl_seconds=settings.session_ttl_seconds,
        cleanup_interval=settings.session_cleanup_interval,
        registry_path=settings.registry_path,
    )
    mgr.start()
    init_session_manager(mgr, disable_session_list=settings.disable_session_list)
    try:
        yield
    finally:
        mgr.stop()
        reset_session_manager()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    if settings is None:
        settings = Settings()

    app = FastAPI(
        title="journalcheck",
        description="Validates callout structure in Markdown journals and offers quick fixes.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Outermost first: body limit runs before anything reads the request.
    app.add_middleware(RequestTimingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestBodyLimitMiddleware)

    app.include_router(sessions.router, prefix="/sessions", tags=["sessions"])

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", version=__version__)

    return app


def main() -> None:
    """Run the REST API server using settings from environment / .env file."""
    settings = Settings()

    logging.basicConfig(level=settings.log_level.upper())
    logger.info(
        "journalcheck API server v%s starting (host=%s, port=%d)",
        __version__,
        settings.api_server_host,
        settings.effective_port,
    )

    uvicorn.run(
        "journalcheck.api.app:create_app",
        factory=True,
        host=settings.api_server_host,
        port=settings.effective_port,
        log_level=settings.log_level.lower(),
    )
