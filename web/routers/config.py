"""Configuration endpoints."""

from typing import Any

from fastapi import APIRouter, Depends

from ci_versioning.config import Settings
from web.deps import get_app_settings

router = APIRouter()


@router.get("")
def get_config(settings: Settings = Depends(get_app_settings)) -> dict[str, Any]:
    """Get effective configuration.

    Credentials are reported as configured or not, never echoed.

    Returns:
        Current configuration as JSON.
    """
    return {
        "db_url": settings.db_url,
        "log_level": settings.log_level,
        "github_api_url": settings.github_api_url,
        "github_app_id": settings.github_app_id,
        "github_installation_id": settings.github_installation_id,
        "github_private_key_configured": settings.github_private_key is not None,
        "github_client_secret_configured": settings.github_client_secret is not None,
        "github_timeout": settings.github_timeout,
        "propagate_create_errors": settings.propagate_create_errors,
        "allow_published_overwrite": settings.allow_published_overwrite,
    }
