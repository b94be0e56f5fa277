"""Build ORM models.

This module defines the CiBuild model, one row per reported CI build.
Nested values (version info, failure, docker info) are stored as JSON
columns; the meta block is kept in flat columns so counters can be
incremented in place.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from ci_versioning.builds.schema import (
    BuildFailure,
    BuildMeta,
    BuildVersionInfo,
    CiBuildSchema,
    DockerInfo,
)
from ci_versioning.db import Base
from ci_versioning.types import BuildStatus, ImageType


class CiBuild(Base):
    """ORM model for CI build records.

    A CiBuild tracks a single [imageType-baseOs-unityVersion-targetPlatform]
    build as it is reported in by the CI runners.

    Attributes:
        build_id: Primary key, see compute_build_id().
        job_id: Identifier of the CI job that started the build.
        status: Build status (started, failed, published).
        image_type: Pipeline stage (base, hub, editor).
        unity_version_info: JSON of BuildVersionInfo, immutable.
        failure: JSON of the latest BuildFailure, if any.
        docker_info: JSON of DockerInfo once published.
        last_build_start: Timestamp when the build was reported as started.
        failure_count: Number of failure reports received.
        last_build_failure: Timestamp of the latest failure report.
        published_date: Timestamp of the publication report.
        added_date: Creation timestamp.
        modified_date: Timestamp of the latest mutation.
    """

    __tablename__ = "ci_builds"

    build_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    job_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=BuildStatus.STARTED.value, index=True
    )
    image_type: Mapped[str] = mapped_column(String(20), nullable=False)

    unity_version_info: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    failure: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    docker_info: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    # Meta
    last_build_start: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True, server_default=func.now()
    )
    failure_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    last_build_failure: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True
    )
    published_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    added_date: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )
    modified_date: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )

    __table_args__ = (Index("ix_ci_builds_image_type_status", "image_type", "status"),)

    def __repr__(self) -> str:
        """Return string representation of CiBuild."""
        return (
            f"<CiBuild(build_id='{self.build_id}', job_id='{self.job_id}', "
            f"status='{self.status}', failure_count={self.failure_count})>"
        )

    def to_schema(self) -> CiBuildSchema:
        """Convert this row into the nested record schema."""
        return CiBuildSchema(
            job_id=self.job_id,
            build_id=self.build_id,
            status=BuildStatus(self.status),
            image_type=ImageType(self.image_type),
            unity_version_info=BuildVersionInfo.model_validate(
                self.unity_version_info
            ),
            failure=(
                BuildFailure.model_validate(self.failure) if self.failure else None
            ),
            docker_info=(
                DockerInfo.model_validate(self.docker_info)
                if self.docker_info
                else None
            ),
            meta=BuildMeta(
                last_build_start=self.last_build_start,
                failure_count=self.failure_count,
                last_build_failure=self.last_build_failure,
                published_date=self.published_date,
            ),
            added_date=self.added_date,
            modified_date=self.modified_date,
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready camelCase record."""
        return self.to_schema().model_dump(mode="json", by_alias=True)

    def is_published(self) -> bool:
        """Check if this build has been published."""
        return self.status == BuildStatus.PUBLISHED.value


__all__ = ["CiBuild"]
