"""Dependencies for FastAPI route handlers.

Settings and the session factory are created once by the application
lifespan and stored on app.state. Route handlers receive a BuildStore
bound to them; the store manages one transaction per operation.
"""

from __future__ import annotations

from typing import Any

from fastapi import Depends, Request
from sqlalchemy.orm import Session, sessionmaker

from ci_versioning.builds.store import BuildStore
from ci_versioning.config import Settings, get_settings


def get_session_factory(request: Request) -> sessionmaker[Session]:
    """Get session factory from app state.

    Args:
        request: FastAPI request object.

    Returns:
        SQLAlchemy session factory.
    """
    factory: Any = request.app.state.session_factory
    return factory  # type: ignore[no-any-return]


def get_app_settings(request: Request) -> Settings:
    """Get settings from app state, falling back to the environment.

    Args:
        request: FastAPI request object.

    Returns:
        Settings instance.
    """
    settings: Settings | None = getattr(request.app.state, "settings", None)
    if settings is None:
        settings = get_settings()
    return settings


def get_build_store(
    session_factory: sessionmaker[Session] = Depends(get_session_factory),
    settings: Settings = Depends(get_app_settings),
) -> BuildStore:
    """Provide a BuildStore for a request.

    Returns:
        BuildStore bound to the application's session factory.
    """
    return BuildStore(session_factory, settings)
