"""
Module: embedder.resources

Purpose:
    Shared drawing resources for one engine run: the label font and the
    resolved marker artifacts.
"""

from .fonts import (
    FontCache,
    FontHandle,
    ResourceError,
    ResourceNotFound,
    ResourceLoadError,
)
from .artifacts import Artifact, ArtifactError, ArtifactStore

__all__ = [
    "FontCache",
    "FontHandle",
    "ResourceError",
    "ResourceNotFound",
    "ResourceLoadError",
    "Artifact",
    "ArtifactError",
    "ArtifactStore",
]
