"""
Serialization Utilities

Provides to/from JSON utilities for marker manifests.

- `load_manifest()` validates against the manifest schema, then builds a
  MarkerSet. Relative artifact paths resolve against the manifest's folder.
- `save_manifest()` always writes the list form, pages ascending and
  records in stored order, so a save/load cycle is stable.
- `relocate_markers()` rewrites artifact references when the artifact
  folder moves. It is a pure data transform; no file is touched.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional, Union

from ..models.markers import MarkerRecord, MarkerSet
from ..schemas.validator import MANIFEST_SCHEMA_VERSION, is_list_form, validate_manifest

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


# ─────────────────────────────────────────────────────────────────────────────
# Record Serialization
# ─────────────────────────────────────────────────────────────────────────────

def serialize_marker(record: MarkerRecord) -> dict[str, Any]:
    """Serialize a MarkerRecord to a list-form manifest entry."""
    return {
        "page": record.page_no,
        "link": record.link,
        "artifact": record.artifact_ref,
        "label": record.label,
    }


def deserialize_marker(
    data: dict[str, Any],
    *,
    page_no: Optional[int] = None,
    base_path: Path | None = None,
) -> MarkerRecord:
    """
    Deserialize one manifest entry.

    Legacy QrCodes.json entries name the artifact ``qrFilePath`` and the
    label ``text``; both are read when the current keys are absent.

    Args:
        data: Entry dictionary
        page_no: Page number for page-keyed entries (overrides ``data["page"]``)
        base_path: If provided, relative artifact paths are joined onto it

    Raises:
        InvalidMarker: If the entry violates record invariants
    """
    artifact = data["artifact"] if "artifact" in data else data["qrFilePath"]
    label = data["label"] if "label" in data else data.get("text")
    if base_path is not None and not Path(artifact).is_absolute():
        artifact = str(base_path / artifact)

    return MarkerRecord(
        page_no=page_no if page_no is not None else data["page"],
        link=data["link"],
        artifact_ref=artifact,
        label=label,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Manifest Serialization
# ─────────────────────────────────────────────────────────────────────────────

def serialize_marker_set(marker_set: MarkerSet, document: Optional[str] = None) -> dict[str, Any]:
    """Serialize a MarkerSet to a list-form manifest dictionary."""
    payload: dict[str, Any] = {"version": MANIFEST_SCHEMA_VERSION}
    if document:
        payload["document"] = document
    payload["markers"] = [serialize_marker(record) for record in marker_set]
    return payload


def deserialize_marker_set(data: Any, *, base_path: Path | None = None) -> MarkerSet:
    """
    Deserialize either manifest shape into a MarkerSet.

    Raises:
        ValidationError: If data fails schema validation
        InvalidMarker: If an entry violates record invariants
    """
    validate_manifest(data)

    if is_list_form(data):
        return MarkerSet.from_records(
            deserialize_marker(entry, base_path=base_path) for entry in data["markers"]
        )

    marker_set = MarkerSet()
    # Page keys are strings in JSON; order numerically rather than lexically
    for key in sorted(data, key=int):
        for entry in data[key]:
            marker_set.add(deserialize_marker(entry, page_no=int(key), base_path=base_path))
    return marker_set


def load_manifest(path: PathLike) -> MarkerSet:
    """
    Load a marker manifest from disk.

    Example:
        >>> markers = load_manifest("out/QrCodes.json")
        >>> markers.page_numbers()
        [1, 4, 7]
    """
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    marker_set = deserialize_marker_set(data, base_path=path.resolve().parent)
    logger.info(f"Loaded {len(marker_set)} markers across {len(marker_set.page_numbers())} pages from {path}")
    return marker_set


def save_manifest(
    marker_set: MarkerSet,
    path: PathLike,
    *,
    document: Optional[str] = None,
    relative_to: Optional[PathLike] = None,
) -> Path:
    """
    Write a MarkerSet as a list-form manifest.

    Args:
        marker_set: Markers to write
        path: Destination JSON file
        document: Optional source document name recorded in the manifest
        relative_to: If given, artifact paths under this folder are written
            relative to it

    Returns:
        The path written
    """
    path = Path(path)
    if relative_to is not None:
        marker_set = relocate_markers(marker_set, relative_to, "")

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(serialize_marker_set(marker_set, document), f, indent=2)
    logger.debug(f"Wrote {len(marker_set)} markers to {path}")
    return path


# ─────────────────────────────────────────────────────────────────────────────
# Relocation
# ─────────────────────────────────────────────────────────────────────────────

def relocate_markers(marker_set: MarkerSet, old_root: PathLike, new_root: PathLike) -> MarkerSet:
    """
    Rewrite artifact references from ``old_root`` to ``new_root``.

    Records whose artifact is not under ``old_root`` are returned unchanged.
    Labels, links, pages and ordering are preserved.

    Example:
        >>> moved = relocate_markers(markers, "/tmp/run1", "/srv/qr")
        >>> moved.markers_for(1)[0].artifact_ref
        '/srv/qr/Page_1/intro.png'
    """
    old = Path(old_root)
    new = Path(new_root)
    moved = 0

    def _relocate(record: MarkerRecord) -> MarkerRecord:
        nonlocal moved
        try:
            relative = Path(record.artifact_ref).relative_to(old)
        except ValueError:
            return record
        moved += 1
        return record.with_artifact((new / relative).as_posix())

    result = marker_set.map_records(_relocate)
    logger.debug(f"Relocated {moved}/{len(marker_set)} artifacts from {old} to {new}")
    return result
