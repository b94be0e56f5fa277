"""Liveness and discovery endpoints.

/health runs a trivial query so load balancers stop routing reports to an
instance whose build database is unreachable.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from fastapi import status as http_status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ci_versioning import __version__
from ci_versioning.db import get_session
from web.deps import get_session_factory

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
def health(
    session_factory: sessionmaker[Session] = Depends(get_session_factory),
) -> dict[str, str]:
    """Report service and database health.

    Raises:
        HTTPException: 503 if the build database cannot be queried.
    """
    try:
        with get_session(session_factory) as session:
            session.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("Health check failed: %s", e)
        raise HTTPException(
            status_code=http_status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"code": "database_unavailable", "message": str(e)},
        ) from None
    return {"status": "ok", "version": __version__, "database": "ok"}


@router.get("/")
def root() -> dict[str, Any]:
    """Describe the API and where runners report builds."""
    return {
        "name": "CI Versioning API",
        "version": __version__,
        "endpoints": {
            "builds": "/builds",
            "config": "/config",
            "health": "/health",
        },
    }
