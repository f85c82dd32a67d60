"""
Module: embedder.layout.models

Purpose:
    Data models for marker layout.
    Page geometry, the placement cursor, and the records of where each
    marker and index cell ended up.

Key Classes:
    - PageCanvas: Page width/height/margin for one placement pass
    - Cursor: Next-draw position within a pass
    - MarkerPlacement: A marker drawn onto a document page
    - IndexPlacement: A marker drawn into an index table cell
    - SkippedMarker: A marker or page the engine could not place
    - PlacementReport: Output of one GridPlacer/IndexPaginator run

Coordinates:
    PDF user space - origin bottom-left, y grows upward. ``y`` on a
    placement is the TOP edge of the box; the box spans ``[y - size, y]``.

Dependencies:
    - dataclasses (std)
    - core.models.markers: MarkerRecord

Used By:
    - embedder.layout.grid: Creates MarkerPlacements
    - embedder.layout.index: Creates IndexPlacements
    - embedder.controller: Aggregates reports
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Literal, Optional, Tuple

from qrdoc_toolkit.core.models.markers import MarkerRecord


SkipKind = Literal["page_out_of_range", "artifact_unavailable"]


@dataclass(frozen=True)
class PageCanvas:
    """
    Geometry of a page for one placement pass (immutable).

    Attributes:
        width: Page width
        height: Page height
        margin: Margin kept clear on all four sides

    Example:
        >>> canvas = PageCanvas(600, 800, 50)
        >>> canvas.usable_width
        500
    """

    width: float
    height: float
    margin: float

    @property
    def usable_width(self) -> float:
        """Width between the left and right margins."""
        return self.width - 2 * self.margin

    @property
    def usable_height(self) -> float:
        """Height between the top and bottom margins."""
        return self.height - 2 * self.margin

    @property
    def origin(self) -> Tuple[float, float]:
        """Top-left corner of the usable area: ``(M, H - M)``."""
        return (self.margin, self.height - self.margin)

    def fits(self, width: float, height: float) -> bool:
        """Whether a ``width x height`` box fits on this page when empty."""
        return width <= self.usable_width and height <= self.usable_height


@dataclass
class Cursor:
    """
    Transient placement position, scoped to one page's pass.

    ``x`` is the left edge and ``y`` the top edge of the next box.
    """

    x: float
    y: float

    @classmethod
    def at_origin(cls, canvas: PageCanvas) -> Cursor:
        """Fresh cursor at ``(M, H - M)``."""
        x, y = canvas.origin
        return cls(x=x, y=y)


@dataclass(frozen=True)
class MarkerPlacement:
    """
    A marker drawn onto a document page.

    Attributes:
        marker: The placed record
        page_index: 0-based document page the marker was drawn on
        x: Left edge of the box
        y: Top edge of the box
        size: Box side length
        overflow: True when drawn on an appended overflow page
    """

    marker: MarkerRecord
    page_index: int
    x: float
    y: float
    size: float
    overflow: bool = False

    @property
    def bottom(self) -> float:
        """Bottom edge (y - size)."""
        return self.y - self.size

    @property
    def right(self) -> float:
        """Right edge (x + size)."""
        return self.x + self.size

    @property
    def rect(self) -> Tuple[float, float, float, float]:
        """``(x0, y0, x1, y1)`` bottom-left/top-right corners."""
        return (self.x, self.bottom, self.right, self.y)


@dataclass(frozen=True)
class IndexPlacement:
    """
    A marker drawn into an index table cell.

    Attributes:
        marker: The indexed record
        page_index: 0-based document page holding the cell
        row: 0-based row within the whole table (pre-overflow numbering)
        column: 0, 1 or 2
        x: Left edge of the cell
        y: Top edge of the cell
        cell_width: Cell width
        cell_height: Cell height
        image_rect: ``(x0, y0, x1, y1)`` of the scaled image inside the cell
    """

    marker: MarkerRecord
    page_index: int
    row: int
    column: int
    x: float
    y: float
    cell_width: float
    cell_height: float
    image_rect: Tuple[float, float, float, float]

    @property
    def bottom(self) -> float:
        """Bottom edge of the cell."""
        return self.y - self.cell_height


@dataclass(frozen=True)
class SkippedMarker:
    """
    A marker the engine did not draw, and why.

    ``marker`` is None when a whole page was skipped; ``count`` then holds
    the number of records on that page.
    """

    page_no: int
    kind: SkipKind
    reason: str
    marker: Optional[MarkerRecord] = None
    count: int = 1

    def describe(self) -> str:
        """One-line human readable description."""
        if self.marker is None:
            return f"Skipped {self.count} marker(s) on page {self.page_no}: {self.reason}"
        return f"Skipped {self.marker} on page {self.page_no}: {self.reason}"


@dataclass
class PlacementReport:
    """
    Output of a layout pass.

    Attributes:
        placements: Markers drawn onto document pages, in draw order
        index_placements: Markers drawn into index cells, in draw order
        skipped: Markers/pages that were not drawn
        overflow_pages: 0-based indices of appended overflow pages
        index_pages: 0-based indices of appended index pages
    """

    placements: List[MarkerPlacement] = field(default_factory=list)
    index_placements: List[IndexPlacement] = field(default_factory=list)
    skipped: List[SkippedMarker] = field(default_factory=list)
    overflow_pages: List[int] = field(default_factory=list)
    index_pages: List[int] = field(default_factory=list)

    @property
    def placed_markers(self) -> List[MarkerRecord]:
        """Records actually drawn onto document pages, in draw order."""
        return [p.marker for p in self.placements]

    @property
    def skipped_count(self) -> int:
        """Total number of records not drawn."""
        return sum(s.count for s in self.skipped)

    @property
    def warnings(self) -> List[str]:
        """Human readable skip descriptions."""
        return [s.describe() for s in self.skipped]
