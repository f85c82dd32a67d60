"""
Core Models Package

Validated data models shared by the extractor, serialization layer and
placement engine.

Records are frozen dataclasses: the engine never mutates its input, and a
relabelled or relocated marker is a new record.
"""

from .markers import InvalidMarker, MarkerRecord, MarkerSet, derive_label

__all__ = [
    "InvalidMarker",
    "MarkerRecord",
    "MarkerSet",
    "derive_label",
]
