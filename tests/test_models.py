"""Tests for build schema, ORM model and build id derivation."""

from datetime import datetime

import pytest
from pydantic import ValidationError
from sqlalchemy import create_engine, inspect
from sqlalchemy.orm import sessionmaker

from ci_versioning.builds.build_id import MAX_BUILD_ID_LENGTH, compute_build_id
from ci_versioning.builds.models import CiBuild
from ci_versioning.builds.schema import (
    BuildFailure,
    BuildVersionInfo,
    DockerInfo,
    RepoVersionInfo,
)
from ci_versioning.db import Base
from ci_versioning.types import BuildStatus, ImageType


@pytest.fixture
def engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture
def session(engine):
    """Create a session for testing."""
    session = sessionmaker(bind=engine, expire_on_commit=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def version_info():
    """Version tuple of a hub build."""
    return BuildVersionInfo(
        base_os="windows",
        repo_version="1.2.0",
        unity_version="2022.3.10f1",
        target_platform="webgl",
    )


@pytest.fixture
def repo_version():
    """Release of the image repository."""
    return RepoVersionInfo(version="1.2.0", major=1, minor=2, patch=0)


class TestSchema:
    """Tests for payload schemas."""

    def test_accepts_camel_case(self):
        """Should parse the camelCase wire shape."""
        info = BuildVersionInfo.model_validate(
            {
                "baseOs": "ubuntu",
                "repoVersion": "1.0.0",
                "unityVersion": "2021.1.0f1",
                "targetPlatform": "android",
            }
        )
        assert info.base_os == "ubuntu"
        assert info.model_dump(by_alias=True)["targetPlatform"] == "android"

    def test_rejects_unknown_fields(self):
        """Should reject fields outside the schema."""
        with pytest.raises(ValidationError):
            BuildFailure.model_validate({"reason": "x", "exitCode": 1})

    def test_rejects_empty_version(self):
        """Should reject empty version components."""
        with pytest.raises(ValidationError):
            BuildVersionInfo(
                base_os="", repo_version="1", unity_version="2", target_platform="3"
            )

    def test_docker_info_requires_all_fields(self):
        """Should require every docker info field."""
        with pytest.raises(ValidationError):
            DockerInfo.model_validate({"imageRepo": "unityci", "imageName": "editor"})


class TestCiBuildModel:
    """Tests for the CiBuild ORM model."""

    def test_table_columns(self, engine):
        """Should create the ci_builds table with meta columns."""
        columns = {c["name"] for c in inspect(engine).get_columns("ci_builds")}
        assert {
            "build_id",
            "job_id",
            "status",
            "image_type",
            "unity_version_info",
            "failure",
            "docker_info",
            "last_build_start",
            "failure_count",
            "last_build_failure",
            "published_date",
            "added_date",
            "modified_date",
        } <= columns

    def test_server_defaults(self, session, version_info):
        """Should fill timestamps and counters on insert."""
        build = CiBuild(
            build_id="b1",
            job_id="job",
            status=BuildStatus.STARTED.value,
            image_type=ImageType.BASE.value,
            unity_version_info=version_info.model_dump(by_alias=True),
        )
        session.add(build)
        session.commit()
        session.refresh(build)

        assert build.failure_count == 0
        assert isinstance(build.added_date, datetime)
        assert build.added_date == build.modified_date
        assert build.last_build_start is not None
        assert build.published_date is None

    def test_to_dict_shape(self, session, version_info):
        """Should serialize into the nested camelCase record."""
        build = CiBuild(
            build_id="b2",
            job_id="job",
            status=BuildStatus.PUBLISHED.value,
            image_type=ImageType.EDITOR.value,
            unity_version_info=version_info.model_dump(by_alias=True),
            failure={"reason": "flaky"},
            docker_info={
                "imageRepo": "unityci",
                "imageName": "editor",
                "friendlyTag": "2022.3.10f1-webgl",
                "specificTag": "windows-2022.3.10f1-webgl-1.2.0",
                "hash": "sha256:abc",
            },
            failure_count=1,
        )
        session.add(build)
        session.commit()
        session.refresh(build)

        data = build.to_dict()
        assert data["buildId"] == "b2"
        assert data["status"] == "published"
        assert data["imageType"] == "editor"
        assert data["unityVersionInfo"]["baseOs"] == "windows"
        assert data["failure"] == {"reason": "flaky"}
        assert data["dockerInfo"]["specificTag"] == "windows-2022.3.10f1-webgl-1.2.0"
        assert data["meta"]["failureCount"] == 1
        assert set(data["meta"]) == {
            "lastBuildStart",
            "failureCount",
            "lastBuildFailure",
            "publishedDate",
        }
        assert build.is_published()

    def test_repr(self):
        """Should include id and status."""
        build = CiBuild(build_id="b3", job_id="j", status="failed", failure_count=2)
        assert "b3" in repr(build)
        assert "failed" in repr(build)


class TestComputeBuildId:
    """Tests for compute_build_id."""

    def test_deterministic(self, version_info, repo_version):
        """Should return the same id for the same combination."""
        first = compute_build_id(ImageType.HUB, version_info, repo_version)
        second = compute_build_id("hub", version_info, repo_version)
        assert first == second == "hub-windows-2022.3.10f1-webgl-1.2.0"

    def test_distinguishes_image_types(self, version_info, repo_version):
        """Should give each pipeline stage its own record."""
        ids = {compute_build_id(t, version_info, repo_version) for t in ImageType}
        assert len(ids) == len(ImageType)

    def test_normalizes_unsafe_characters(self, repo_version):
        """Should lowercase and replace unsafe characters."""
        info = BuildVersionInfo(
            base_os="Ubuntu 20.04",
            repo_version="1.2.0",
            unity_version="2021.1.0f1",
            target_platform="Linux/IL2CPP",
        )
        build_id = compute_build_id("editor", info, repo_version)
        assert build_id == "editor-ubuntu-20.04-2021.1.0f1-linux-il2cpp-1.2.0"

    def test_rejects_empty_component(self, repo_version):
        """Should refuse components that normalize to nothing."""
        info = BuildVersionInfo(
            base_os="!!!",
            repo_version="1.2.0",
            unity_version="2021.1.0f1",
            target_platform="webgl",
        )
        with pytest.raises(ValueError):
            compute_build_id("base", info, repo_version)

    def test_rejects_overlong_id(self, repo_version):
        """Should refuse ids that do not fit the key column."""
        info = BuildVersionInfo(
            base_os="a" * MAX_BUILD_ID_LENGTH,
            repo_version="1.2.0",
            unity_version="2021.1.0f1",
            target_platform="webgl",
        )
        with pytest.raises(ValueError):
            compute_build_id("base", info, repo_version)

    def test_rejects_unknown_image_type(self, version_info, repo_version):
        """Should refuse unknown image types."""
        with pytest.raises(ValueError):
            compute_build_id("runtime", version_info, repo_version)
