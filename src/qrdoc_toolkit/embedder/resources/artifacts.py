"""
Module: embedder.resources.artifacts

Purpose:
    Resolve a marker's artifact reference to raster bytes at placement
    time. Failures are per-marker and recoverable: the caller skips the
    marker and carries on.

Key Classes:
    - ArtifactStore: Resolves and caches artifacts for one run
    - Artifact: Resolved image bytes with format and pixel size
    - ArtifactError: Artifact missing, unreadable, or not PNG/JPEG

Dependencies:
    - PIL: Format detection and integrity check

Used By:
    - embedder.layout.grid: Resolves before drawing each marker
    - embedder.layout.index: Reuses the run's resolved artifacts
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = frozenset({"PNG", "JPEG"})


class ArtifactError(Exception):
    """Artifact could not be resolved to a supported raster image."""

    def __init__(self, ref: str, reason: str):
        super().__init__(f"{reason}: {ref}")
        self.ref = ref
        self.reason = reason


@dataclass(frozen=True)
class Artifact:
    """
    A resolved raster artifact (immutable).

    Attributes:
        ref: The reference it was resolved from
        data: Encoded image bytes
        format: "PNG" or "JPEG"
        width: Pixel width
        height: Pixel height
    """

    ref: str
    data: bytes
    format: str
    width: int
    height: int


class ArtifactStore:
    """
    Resolves artifact references for one engine run.

    Relative references resolve against ``base_path`` when given.
    Successful resolutions are cached so the index pass reuses the
    bytes read for the page pass.

    Example:
        >>> store = ArtifactStore(Path("out/Document"))
        >>> artifact = store.resolve("Page_1/intro.png")
        >>> artifact.format
        'PNG'
    """

    def __init__(self, base_path: Optional[Path] = None) -> None:
        self.base_path = Path(base_path) if base_path is not None else None
        self._cache: Dict[str, Artifact] = {}

    def resolve(self, ref: str) -> Artifact:
        """
        Resolve ``ref`` to a verified PNG/JPEG artifact.

        Raises:
            ArtifactError: If the file is missing, unreadable, or unsupported
        """
        cached = self._cache.get(ref)
        if cached is not None:
            return cached

        path = self._path_for(ref)
        if not path.is_file():
            raise ArtifactError(ref, "Artifact file not found")

        try:
            data = path.read_bytes()
        except OSError as e:
            raise ArtifactError(ref, f"Artifact file unreadable ({e})") from e

        artifact = self._decode(ref, data)
        self._cache[ref] = artifact
        logger.debug(f"Resolved artifact {ref} ({artifact.format} {artifact.width}x{artifact.height})")
        return artifact

    def __contains__(self, ref: str) -> bool:
        return ref in self._cache

    def _path_for(self, ref: str) -> Path:
        path = Path(ref)
        if self.base_path is not None and not path.is_absolute():
            path = self.base_path / path
        return path

    @staticmethod
    def _decode(ref: str, data: bytes) -> Artifact:
        try:
            with Image.open(io.BytesIO(data)) as img:
                fmt = img.format
                width, height = img.size
                img.verify()
        except (UnidentifiedImageError, OSError, SyntaxError) as e:
            raise ArtifactError(ref, f"Artifact is not a readable image ({e})") from e

        if fmt not in SUPPORTED_FORMATS:
            raise ArtifactError(ref, f"Unsupported artifact format {fmt}")

        return Artifact(ref=ref, data=data, format=fmt, width=width, height=height)
