"""CI Versioning - build lifecycle records for the Unity image pipeline.

This package tracks base, hub and editor image builds reported by CI runners,
and provides an authenticated GitHub App client for the rest of the backend.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
