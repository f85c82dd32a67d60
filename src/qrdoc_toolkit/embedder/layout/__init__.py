"""
Module: embedder.layout

Purpose:
    Marker layout for embed runs.
    Places markers onto their pages and builds the appended index table.

Key Classes:
    - GridPlacer: Row-major per-page placement with overflow pages
    - IndexPaginator: Three-column index pages
    - GridConfig / IndexConfig: Layout settings
    - PlacementReport: Everything a layout pass drew or skipped

Dependencies:
    - embedder.resources: FontCache, ArtifactStore
    - embedder.output: DocumentSink

Used By:
    - embedder.controller: Run orchestration
"""

from .config import GridConfig, IndexConfig
from .models import (
    PageCanvas,
    Cursor,
    MarkerPlacement,
    IndexPlacement,
    SkippedMarker,
    PlacementReport,
)
from .grid import GridPlacer, LayoutError
from .index import IndexPaginator

__all__ = [
    # Config
    "GridConfig",
    "IndexConfig",
    # Models
    "PageCanvas",
    "Cursor",
    "MarkerPlacement",
    "IndexPlacement",
    "SkippedMarker",
    "PlacementReport",
    # Placement
    "GridPlacer",
    "IndexPaginator",
    "LayoutError",
]
