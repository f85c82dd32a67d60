"""
Utils Package

Serialization and utility functions.
"""

from .serialization import (
    serialize_marker,
    deserialize_marker,
    serialize_marker_set,
    deserialize_marker_set,
    load_manifest,
    save_manifest,
    relocate_markers,
)

__all__ = [
    "serialize_marker",
    "deserialize_marker",
    "serialize_marker_set",
    "deserialize_marker_set",
    "load_manifest",
    "save_manifest",
    "relocate_markers",
]
