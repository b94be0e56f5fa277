"""Pydantic models for CI build payloads.

These models validate what CI runners report (build start, failure and
publication) and describe the serialized shape of a build record. Field
names are snake_case in Python and camelCase on the wire.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ci_versioning.types import BuildStatus, ImageType


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


class BuildVersionInfo(_CamelModel):
    """Version tuple a build is parameterized by.

    Attributes:
        base_os: Operating system of the base image (e.g., 'ubuntu').
        repo_version: Version of the image repository (e.g., '0.1.0').
        unity_version: Engine version (e.g., '2021.1.0f1').
        target_platform: Build target (e.g., 'linux-il2cpp').
    """

    base_os: str = Field(min_length=1)
    repo_version: str = Field(min_length=1)
    unity_version: str = Field(min_length=1)
    target_platform: str = Field(min_length=1)


class RepoVersionInfo(_CamelModel):
    """Release of the image repository that a build belongs to."""

    version: str = Field(min_length=1)
    major: int = Field(ge=0)
    minor: int = Field(ge=0)
    patch: int = Field(ge=0)


class BuildFailure(_CamelModel):
    """Failure reported by a CI runner."""

    reason: str


class DockerInfo(_CamelModel):
    """Location of a published image.

    Attributes:
        image_repo: Registry repository (e.g., 'unityci').
        image_name: Image name (e.g., 'editor').
        friendly_tag: Human friendly tag (e.g., '2021.1.0f1-linux-il2cpp').
        specific_tag: Fully qualified tag including the repo version.
        hash: Image digest.
    """

    image_repo: str
    image_name: str
    friendly_tag: str
    specific_tag: str
    hash: str


class BuildMeta(_CamelModel):
    """Bookkeeping counters and timestamps of a build record."""

    last_build_start: datetime | None = None
    failure_count: int = 0
    last_build_failure: datetime | None = None
    published_date: datetime | None = None


class CiBuildSchema(_CamelModel):
    """Serialized shape of a build record."""

    job_id: str
    build_id: str
    status: BuildStatus
    image_type: ImageType
    unity_version_info: BuildVersionInfo
    failure: BuildFailure | None = None
    docker_info: DockerInfo | None = None
    meta: BuildMeta
    added_date: datetime
    modified_date: datetime


__all__ = [
    "BuildFailure",
    "BuildMeta",
    "BuildVersionInfo",
    "CiBuildSchema",
    "DockerInfo",
    "RepoVersionInfo",
]
