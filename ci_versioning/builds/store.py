"""Build store module.

This module provides the lifecycle API for CI build records:
- get_all(): List every record
- create(): Report a build as started
- mark_build_as_failed(): Report a failure, bumping the failure counter
- mark_build_as_published(): Report a published image

Every operation runs in its own session. Timestamps are assigned by the
database inside the write statement and the failure counter is incremented
in place, so concurrent reports for the same build are never lost.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError

from ci_versioning.builds.build_id import compute_build_id
from ci_versioning.builds.models import CiBuild
from ci_versioning.config import get_settings
from ci_versioning.db import get_session
from ci_versioning.types import BuildStatus, ImageType

if TYPE_CHECKING:
    from sqlalchemy.orm import Session, sessionmaker

    from ci_versioning.builds.schema import (
        BuildFailure,
        BuildVersionInfo,
        CiBuildSchema,
        DockerInfo,
        RepoVersionInfo,
    )
    from ci_versioning.config import Settings

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Base error for build store operations."""

    def __init__(self, message: str, code: str = "store_error") -> None:
        super().__init__(message)
        self.code = code


class BuildNotFoundError(StoreError):
    """Raised when a build is not found."""

    def __init__(self, build_id: str, code: str = "build_not_found") -> None:
        super().__init__(f"Build not found: {build_id}", code=code)
        self.build_id = build_id


class InvalidTransitionError(StoreError):
    """Raised when a report is refused by the terminal-state policy."""

    def __init__(
        self,
        build_id: str,
        status: BuildStatus,
        code: str = "invalid_transition",
    ) -> None:
        super().__init__(
            f"Build {build_id} is already {status.value}", code=code
        )
        self.build_id = build_id
        self.status = status


class BuildStore:
    """Lifecycle management of CI build records.

    The intended flow is started -> failed* -> published. Transitions are
    not guarded unless settings.allow_published_overwrite is false, in which
    case published builds refuse further reports.

    Args:
        session_factory: Factory for database sessions.
        settings: Application settings. Defaults to settings from environment.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        settings: Settings | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._settings = settings if settings is not None else get_settings()

    def get_all(self) -> list[CiBuildSchema]:
        """Return every build record in storage order.

        Raises:
            StoreError: If the records cannot be read.
        """
        try:
            with get_session(self._session_factory) as session:
                builds = session.execute(select(CiBuild)).scalars().all()
                return [build.to_schema() for build in builds]
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to list builds: {e}") from e

    def get(self, build_id: str) -> CiBuildSchema:
        """Return a single build record.

        Raises:
            BuildNotFoundError: If no record has this id.
            StoreError: If the record cannot be read.
        """
        try:
            with get_session(self._session_factory) as session:
                build = session.get(CiBuild, build_id)
                if build is None:
                    raise BuildNotFoundError(build_id)
                return build.to_schema()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to read build {build_id}: {e}") from e

    def create(
        self,
        job_id: str,
        image_type: ImageType | str,
        build_version_info: BuildVersionInfo,
        repo_version_info: RepoVersionInfo,
        build_id: str | None = None,
    ) -> str | None:
        """Record a build as started.

        An existing record with the same id is replaced, resetting its
        counters. Storage errors are logged and swallowed unless
        settings.propagate_create_errors is set.

        Args:
            job_id: Identifier of the CI job running the build.
            image_type: Pipeline stage of the build.
            build_version_info: Version tuple the build is parameterized by.
            repo_version_info: Release of the image repository.
            build_id: Explicit id; derived with compute_build_id() if omitted.

        Returns:
            The build id, or None if the record could not be stored.

        Raises:
            StoreError: If storing fails and propagate_create_errors is set.
        """
        image_type = ImageType(image_type)
        if build_id is None:
            build_id = compute_build_id(
                image_type, build_version_info, repo_version_info
            )

        try:
            with get_session(self._session_factory) as session:
                session.execute(delete(CiBuild).where(CiBuild.build_id == build_id))
                session.add(
                    CiBuild(
                        build_id=build_id,
                        job_id=job_id,
                        status=BuildStatus.STARTED.value,
                        image_type=image_type.value,
                        unity_version_info=build_version_info.model_dump(
                            by_alias=True
                        ),
                        failure_count=0,
                    )
                )
        except SQLAlchemyError as e:
            if self._settings.propagate_create_errors:
                raise StoreError(f"Failed to create build {build_id}: {e}") from e
            logger.error(
                "Error occurred while trying to enqueue build %s: %s", build_id, e
            )
            return None

        logger.info(
            "Build %s started by job %s (repo version %s)",
            build_id,
            job_id,
            repo_version_info.version,
        )
        return build_id

    def mark_build_as_failed(
        self, build_id: str, failure: BuildFailure
    ) -> CiBuildSchema:
        """Record a failure report for a build.

        Raises:
            BuildNotFoundError: If no record has this id.
            InvalidTransitionError: If the build is published and overwrites
                are not allowed.
            StoreError: If the update cannot be applied.
        """
        build = self._apply_update(
            build_id,
            {
                "status": BuildStatus.FAILED.value,
                "failure": failure.model_dump(by_alias=True),
                "modified_date": func.now(),
                "failure_count": CiBuild.failure_count + 1,
                "last_build_failure": func.now(),
            },
        )
        logger.warning(
            "Build %s failed (%d failures): %s",
            build_id,
            build.meta.failure_count,
            failure.reason,
        )
        return build

    def mark_build_as_published(
        self, build_id: str, docker_info: DockerInfo
    ) -> CiBuildSchema:
        """Record the publication of a build's image.

        Raises:
            BuildNotFoundError: If no record has this id.
            InvalidTransitionError: If the build is published and overwrites
                are not allowed.
            StoreError: If the update cannot be applied.
        """
        build = self._apply_update(
            build_id,
            {
                "status": BuildStatus.PUBLISHED.value,
                "docker_info": docker_info.model_dump(by_alias=True),
                "modified_date": func.now(),
                "published_date": func.now(),
            },
        )
        logger.info(
            "Build %s published as %s/%s:%s",
            build_id,
            docker_info.image_repo,
            docker_info.image_name,
            docker_info.specific_tag,
        )
        return build

    def _apply_update(self, build_id: str, values: dict[str, Any]) -> CiBuildSchema:
        """Apply a single-statement update to one build and return it."""
        stmt = update(CiBuild).where(CiBuild.build_id == build_id).values(**values)
        if not self._settings.allow_published_overwrite:
            stmt = stmt.where(CiBuild.status != BuildStatus.PUBLISHED.value)
        stmt = stmt.execution_options(synchronize_session=False)

        try:
            with get_session(self._session_factory) as session:
                result = session.execute(stmt)
                build = session.get(CiBuild, build_id)
                if build is None:
                    raise BuildNotFoundError(build_id)
                if result.rowcount == 0:
                    raise InvalidTransitionError(build_id, BuildStatus(build.status))
                return build.to_schema()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to update build {build_id}: {e}") from e


__all__ = [
    "BuildNotFoundError",
    "BuildStore",
    "InvalidTransitionError",
    "StoreError",
]
