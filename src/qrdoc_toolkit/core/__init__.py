"""
QR Document Toolkit Core Package

Shared data models and utilities used by both the link extractor and the
placement engine.

**DESIGN NOTES:**

1. **Immutable Records**
   - A MarkerRecord never changes after construction
   - Relabelling or relocating an artifact produces a new record

2. **Deterministic Ordering**
   - MarkerSet always yields pages in ascending numeric order
   - Records keep insertion order within a page

3. **Validated Manifests**
   - Manifests are checked against `markers.schema.json` before any
     record is built
"""

from .models import InvalidMarker, MarkerRecord, MarkerSet, derive_label

__all__ = [
    "InvalidMarker",
    "MarkerRecord",
    "MarkerSet",
    "derive_label",
]
