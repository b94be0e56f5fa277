"""Build id derivation.

A build record is identified by the combination it was built for:
image type, base OS, engine version, target platform and the release of
the image repository. The id is a readable slug so that CI runners and
operators can derive it without a lookup.
"""

from __future__ import annotations

import re

from ci_versioning.builds.schema import BuildVersionInfo, RepoVersionInfo
from ci_versioning.types import ImageType

_UNSAFE_CHARS = re.compile(r"[^a-z0-9._\-]+")

MAX_BUILD_ID_LENGTH = 255


def _slug(value: str) -> str:
    """Lowercase a component and replace unsafe characters with '-'."""
    return _UNSAFE_CHARS.sub("-", value.strip().lower()).strip("-")


def compute_build_id(
    image_type: ImageType | str,
    build_version_info: BuildVersionInfo,
    repo_version_info: RepoVersionInfo,
) -> str:
    """Compute the deterministic id of a build record.

    Args:
        image_type: Pipeline stage of the build.
        build_version_info: Version tuple the build is parameterized by.
        repo_version_info: Release of the image repository.

    Returns:
        Id of the form '{imageType}-{baseOs}-{unityVersion}-{targetPlatform}-{repoVersion}'.

    Raises:
        ValueError: If a component is empty after normalization, or the
            resulting id is too long.
    """
    image_type_value = ImageType(image_type).value
    parts = [
        image_type_value,
        build_version_info.base_os,
        build_version_info.unity_version,
        build_version_info.target_platform,
        repo_version_info.version,
    ]
    slugs = [_slug(part) for part in parts]
    if not all(slugs):
        raise ValueError(f"Cannot derive build id from components: {parts}")

    build_id = "-".join(slugs)
    if len(build_id) > MAX_BUILD_ID_LENGTH:
        raise ValueError(f"Build id exceeds {MAX_BUILD_ID_LENGTH} characters")
    return build_id


__all__ = ["MAX_BUILD_ID_LENGTH", "compute_build_id"]
