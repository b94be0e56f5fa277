"""GitHub integration module.

This module handles:
- GitHub App JWT and installation token authentication
- Bootstrapping a verified API client
"""

from ci_versioning.github.auth import (
    AuthError,
    GitHubAppAuth,
    GitHubAppCredentials,
)
from ci_versioning.github.client import (
    GitHubClient,
    fetch_app_metadata,
    init_client,
)

__all__ = [
    "AuthError",
    "GitHubAppAuth",
    "GitHubAppCredentials",
    "GitHubClient",
    "fetch_app_metadata",
    "init_client",
]
