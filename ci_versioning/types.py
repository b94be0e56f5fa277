"""Shared type definitions for ci_versioning.

This module contains enums shared across subpackages to avoid circular
imports.
"""

from enum import Enum


class BuildStatus(str, Enum):
    """Status of a CI build record."""

    STARTED = "started"
    FAILED = "failed"
    PUBLISHED = "published"


class ImageType(str, Enum):
    """Stage of the image pipeline a build belongs to."""

    BASE = "base"
    HUB = "hub"
    EDITOR = "editor"


__all__ = ["BuildStatus", "ImageType"]
