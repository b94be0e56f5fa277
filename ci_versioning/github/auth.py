"""GitHub App authentication for httpx.

GitHub Apps authenticate in two steps:
- A short-lived JWT signed with the app's private key, accepted only by
  the /app routes
- An installation access token, obtained with that JWT, for every other
  route

GitHubAppAuth plugs both into an httpx client so callers only deal with
plain requests.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Generator
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, cast

import httpx
import jwt

from ci_versioning.config import ConfigError

if TYPE_CHECKING:
    from ci_versioning.config import Settings

logger = logging.getLogger(__name__)

# GitHub rejects app JWTs valid for more than 10 minutes
JWT_LIFETIME_SECONDS = 540

# Backdate iat to tolerate clock drift
JWT_CLOCK_DRIFT_SECONDS = 60

# Refresh installation tokens this long before they expire
TOKEN_REFRESH_MARGIN = timedelta(seconds=60)


class AuthError(Exception):
    """Raised when GitHub App credentials cannot be exchanged or verified."""

    def __init__(
        self,
        message: str,
        code: str = "auth_error",
        status_code: int | None = None,
    ) -> None:
        """Initialize AuthError.

        Args:
            message: Error description.
            code: Error code for structured error handling.
            status_code: HTTP status returned by GitHub, if any.
        """
        super().__init__(message)
        self.code = code
        self.status_code = status_code


@dataclass(frozen=True)
class GitHubAppCredentials:
    """Installation credentials of a GitHub App."""

    app_id: int
    installation_id: int
    private_key: str = field(repr=False)
    client_secret: str = field(repr=False)

    @classmethod
    def from_settings(cls, settings: Settings) -> GitHubAppCredentials:
        """Read credentials from settings.

        Raises:
            ConfigError: If any credential is missing or blank.
        """
        private_key = (
            settings.github_private_key.get_secret_value()
            if settings.github_private_key
            else ""
        )
        client_secret = (
            settings.github_client_secret.get_secret_value()
            if settings.github_client_secret
            else ""
        )

        missing = [
            name
            for name, present in (
                ("github_app_id", settings.github_app_id is not None),
                ("github_installation_id", settings.github_installation_id is not None),
                ("github_private_key", bool(private_key.strip())),
                ("github_client_secret", bool(client_secret.strip())),
            )
            if not present
        ]
        if missing:
            raise ConfigError(
                f"Missing GitHub App credentials: {', '.join(missing)}",
                code="missing_credentials",
            )

        return cls(
            app_id=cast(int, settings.github_app_id),
            installation_id=cast(int, settings.github_installation_id),
            private_key=private_key,
            client_secret=client_secret,
        )


class GitHubAppAuth(httpx.Auth):
    """httpx auth flow for a GitHub App installation.

    Args:
        credentials: App installation credentials.
        api_url: Base URL of the GitHub REST API the client talks to.
    """

    requires_response_body = True

    def __init__(self, credentials: GitHubAppCredentials, api_url: str) -> None:
        self.credentials = credentials
        self.api_url = httpx.URL(api_url)
        self._token: str | None = None
        self._token_expires_at: datetime | None = None

    def create_app_jwt(self) -> str:
        """Sign a JWT identifying the app itself.

        Raises:
            AuthError: If the private key cannot sign the token.
        """
        now = int(time.time())
        payload = {
            "iat": now - JWT_CLOCK_DRIFT_SECONDS,
            "exp": now + JWT_LIFETIME_SECONDS,
            "iss": str(self.credentials.app_id),
        }
        try:
            return jwt.encode(payload, self.credentials.private_key, algorithm="RS256")
        except (jwt.PyJWTError, ValueError, TypeError) as e:
            raise AuthError(
                f"Cannot sign app JWT: {e}", code="invalid_private_key"
            ) from e

    def _relative_path(self, request: httpx.Request) -> str:
        base_path = self.api_url.path.rstrip("/")
        path = request.url.path
        if base_path and path.startswith(base_path):
            path = path[len(base_path) :]
        return path or "/"

    def _uses_app_jwt(self, request: httpx.Request) -> bool:
        path = self._relative_path(request)
        return path == "/app" or path.startswith("/app/")

    def _token_is_fresh(self) -> bool:
        if self._token is None or self._token_expires_at is None:
            return False
        return datetime.now(timezone.utc) + TOKEN_REFRESH_MARGIN < self._token_expires_at

    def _build_token_request(self) -> httpx.Request:
        path = f"/app/installations/{self.credentials.installation_id}/access_tokens"
        url = self.api_url.copy_with(path=self.api_url.path.rstrip("/") + path)
        return httpx.Request(
            "POST",
            url,
            headers={
                "Accept": "application/vnd.github+json",
                "Authorization": f"Bearer {self.create_app_jwt()}",
            },
        )

    def _update_token(self, response: httpx.Response) -> None:
        if response.status_code != 201:
            raise AuthError(
                "Installation token exchange failed with status "
                f"{response.status_code}",
                status_code=response.status_code,
            )
        data = response.json()
        self._token = data["token"]
        self._token_expires_at = datetime.fromisoformat(
            data["expires_at"].replace("Z", "+00:00")
        )
        logger.debug(
            "Obtained installation token for installation %s, expires at %s",
            self.credentials.installation_id,
            self._token_expires_at.isoformat(),
        )

    def auth_flow(
        self, request: httpx.Request
    ) -> Generator[httpx.Request, httpx.Response, None]:
        """Authenticate a request with the app JWT or the installation token."""
        if self._uses_app_jwt(request):
            request.headers["Authorization"] = f"Bearer {self.create_app_jwt()}"
            yield request
            return

        if not self._token_is_fresh():
            token_response = yield self._build_token_request()
            self._update_token(token_response)

        request.headers["Authorization"] = f"Bearer {self._token}"
        yield request


__all__ = [
    "AuthError",
    "GitHubAppAuth",
    "GitHubAppCredentials",
    "JWT_LIFETIME_SECONDS",
]
