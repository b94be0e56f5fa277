"""CI build records module.

This module handles:
- Build record model and serialized schema
- Deterministic build id derivation
- Build lifecycle (started, failed, published) persistence
"""

from ci_versioning.builds.build_id import compute_build_id
from ci_versioning.builds.models import CiBuild
from ci_versioning.builds.schema import (
    BuildFailure,
    BuildMeta,
    BuildVersionInfo,
    CiBuildSchema,
    DockerInfo,
    RepoVersionInfo,
)
from ci_versioning.builds.store import (
    BuildNotFoundError,
    BuildStore,
    InvalidTransitionError,
    StoreError,
)

__all__ = [
    # Models
    "CiBuild",
    # Schema
    "BuildFailure",
    "BuildMeta",
    "BuildVersionInfo",
    "CiBuildSchema",
    "DockerInfo",
    "RepoVersionInfo",
    # Store
    "BuildNotFoundError",
    "BuildStore",
    "InvalidTransitionError",
    "StoreError",
    "compute_build_id",
]
