"""FastAPI application factory and main app.

This module creates the FastAPI application with all routers and
dependency injection configured.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from ci_versioning import __version__
from ci_versioning.config import configure_logging, get_settings
from ci_versioning.db import create_all_tables, get_engine, get_session_factory
from web.routers import builds, config, health


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager.

    Loads settings, configures logging and initializes database tables
    on startup.
    """
    settings = get_settings()
    configure_logging(settings)
    engine = get_engine(settings.db_url)
    create_all_tables(engine)
    app.state.settings = settings
    app.state.session_factory = get_session_factory(engine)
    yield
    engine.dispose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application.
    """
    application = FastAPI(
        title="CI Versioning API",
        description="HTTP API for reporting the lifecycle of Unity image "
        "builds (base, hub, editor)",
        version=__version__,
        lifespan=lifespan,
    )

    # Include routers
    application.include_router(health.router, tags=["health"])
    application.include_router(config.router, prefix="/config", tags=["config"])
    application.include_router(builds.router, prefix="/builds", tags=["builds"])

    return application


# Create the default application instance
app = create_app()
