"""FastAPI web application for CI Versioning.

This module provides the HTTP API CI runners report build progress to.

All business logic is delegated to core modules in ci_versioning/.
"""

from web.app import app, create_app

__all__ = ["app", "create_app"]
