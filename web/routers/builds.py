"""Build reporting endpoints.

- GET /builds - List all build records
- GET /builds/{id} - Get build by ID
- POST /builds - Report a build as started
- POST /builds/{id}/failure - Report a build failure
- POST /builds/{id}/publication - Report a published image
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from fastapi import status as http_status
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ci_versioning.builds.schema import (
    BuildFailure,
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
from ci_versioning.types import ImageType
from web.deps import get_build_store

router = APIRouter()


class CreateBuildRequest(BaseModel):
    """Request body for reporting a started build."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    job_id: str
    image_type: ImageType
    build_version_info: BuildVersionInfo
    repo_version_info: RepoVersionInfo
    build_id: str | None = None


def _record_to_dict(build: CiBuildSchema) -> dict[str, Any]:
    """Convert a build record to its camelCase dictionary."""
    return build.model_dump(mode="json", by_alias=True)


def _store_error_to_http(error: StoreError) -> HTTPException:
    """Map a store error onto an HTTP error response."""
    if isinstance(error, BuildNotFoundError):
        status_code = http_status.HTTP_404_NOT_FOUND
    elif isinstance(error, InvalidTransitionError):
        status_code = http_status.HTTP_409_CONFLICT
    else:
        status_code = http_status.HTTP_503_SERVICE_UNAVAILABLE
    return HTTPException(
        status_code=status_code,
        detail={"code": error.code, "message": str(error)},
    )


@router.get("")
def list_builds_endpoint(
    store: BuildStore = Depends(get_build_store),
) -> list[dict[str, Any]]:
    """List all build records.

    Returns:
        List of build records, in no particular order.
    """
    try:
        builds = store.get_all()
    except StoreError as e:
        raise _store_error_to_http(e) from None
    return [_record_to_dict(b) for b in builds]


@router.get("/{build_id}")
def get_build_endpoint(
    build_id: str,
    store: BuildStore = Depends(get_build_store),
) -> dict[str, Any]:
    """Get a build record by ID.

    Raises:
        HTTPException: If build not found.
    """
    try:
        return _record_to_dict(store.get(build_id))
    except StoreError as e:
        raise _store_error_to_http(e) from None


@router.post("", status_code=http_status.HTTP_202_ACCEPTED)
def create_build_endpoint(
    request: CreateBuildRequest,
    store: BuildStore = Depends(get_build_store),
) -> dict[str, str | None]:
    """Report a build as started.

    Returns:
        The build id, or null if the record could not be stored and
        storage errors are not propagated.
    """
    try:
        build_id = store.create(
            job_id=request.job_id,
            image_type=request.image_type,
            build_version_info=request.build_version_info,
            repo_version_info=request.repo_version_info,
            build_id=request.build_id,
        )
    except ValueError as e:
        raise HTTPException(
            status_code=http_status.HTTP_400_BAD_REQUEST,
            detail={"code": "invalid_build_id", "message": str(e)},
        ) from None
    except StoreError as e:
        raise _store_error_to_http(e) from None
    return {"buildId": build_id}


@router.post("/{build_id}/failure")
def report_failure_endpoint(
    build_id: str,
    failure: BuildFailure,
    store: BuildStore = Depends(get_build_store),
) -> dict[str, Any]:
    """Report a build failure.

    Raises:
        HTTPException: If the build is missing or the report is refused.
    """
    try:
        return _record_to_dict(store.mark_build_as_failed(build_id, failure))
    except StoreError as e:
        raise _store_error_to_http(e) from None


@router.post("/{build_id}/publication")
def report_publication_endpoint(
    build_id: str,
    docker_info: DockerInfo,
    store: BuildStore = Depends(get_build_store),
) -> dict[str, Any]:
    """Report the publication of a build's image.

    Raises:
        HTTPException: If the build is missing or the report is refused.
    """
    try:
        return _record_to_dict(store.mark_build_as_published(build_id, docker_info))
    except StoreError as e:
        raise _store_error_to_http(e) from None
