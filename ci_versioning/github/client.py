"""GitHub API client bootstrap.

init_client() builds one authenticated httpx client per process and
verifies the app credentials with a single GET /app request.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from ci_versioning import __version__
from ci_versioning.config import get_settings
from ci_versioning.github.auth import AuthError, GitHubAppAuth, GitHubAppCredentials

if TYPE_CHECKING:
    from ci_versioning.config import Settings

logger = logging.getLogger(__name__)

GITHUB_API_VERSION = "2022-11-28"


class GitHubClient(httpx.Client):
    """httpx client authenticated as a GitHub App installation.

    Attributes:
        app: Body of the GET /app response that verified the credentials.
    """

    app: dict[str, Any]

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.app = {}


def _default_headers() -> dict[str, str]:
    return {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": GITHUB_API_VERSION,
        "User-Agent": f"ci-versioning/{__version__}",
    }


def fetch_app_metadata(client: httpx.Client) -> dict[str, Any]:
    """Fetch metadata of the authenticated GitHub App.

    Args:
        client: Client created by init_client().

    Returns:
        Decoded JSON body of GET /app.

    Raises:
        AuthError: If the request fails or GitHub rejects the credentials.
    """
    try:
        response = client.get("/app")
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        status_code = e.response.status_code
        raise AuthError(
            f"GitHub rejected the app credentials (HTTP {status_code})",
            code="credentials_rejected",
            status_code=status_code,
        ) from e
    except httpx.HTTPError as e:
        raise AuthError(
            f"GitHub app metadata request failed: {e}", code="request_failed"
        ) from e

    data: dict[str, Any] = response.json()
    return data


def init_client(settings: Settings | None = None) -> GitHubClient:
    """Create an authenticated client for the GitHub API.

    Issues exactly one GET /app request to verify the credentials and
    logs the returned app parameters at debug level. Failures are not
    retried.

    Args:
        settings: Application settings. Defaults to settings from environment.

    Returns:
        GitHubClient with GitHub App authentication. Its `app` attribute
        holds the verified app metadata.

    Raises:
        ConfigError: If credentials are missing.
        AuthError: If the credentials cannot be verified.
    """
    if settings is None:
        settings = get_settings()

    credentials = GitHubAppCredentials.from_settings(settings)
    client = GitHubClient(
        base_url=settings.github_api_url,
        auth=GitHubAppAuth(credentials, settings.github_api_url),
        headers=_default_headers(),
        timeout=settings.github_timeout,
    )

    try:
        client.app = fetch_app_metadata(client)
    except AuthError:
        client.close()
        raise

    logger.debug("app parameters: %s", client.app)
    logger.info(
        "Authenticated as GitHub App %s (installation %s)",
        client.app.get("slug", credentials.app_id),
        credentials.installation_id,
    )
    return client


__all__ = [
    "GITHUB_API_VERSION",
    "GitHubClient",
    "fetch_app_metadata",
    "init_client",
]
