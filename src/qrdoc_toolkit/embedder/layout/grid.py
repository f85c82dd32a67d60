"""
Module: embedder.layout.grid

Purpose:
    Place each page's markers onto that page in a row-major grid.
    Rows wrap on horizontal exhaustion; pages overflow onto new pages
    appended at the end of the document on vertical exhaustion.

Key Classes:
    - GridPlacer: Per-page marker placement
    - LayoutError: A marker cannot fit an empty page (run-fatal)

Algorithm:
    For each page in ascending order, with a fresh cursor at (M, H - M):
    1. Take the next marker off the page's work queue
    2. Resolve its artifact; skip the marker if that fails
    3. If x + S > W - M, wrap: x = M, y -= S + Sy
    4. If y - S < M, close the page, append an overflow page, reset cursor
    5. Draw border, image and label; x += S + Sx

Dependencies:
    - embedder.layout.config: GridConfig
    - embedder.layout.models: PageCanvas, Cursor, MarkerPlacement, PlacementReport
    - embedder.resources: FontCache, ArtifactStore
    - embedder.output.sink: DocumentSink

Used By:
    - embedder.controller: First pass of an embed run
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Deque, List, Optional, Sequence

from qrdoc_toolkit.core.models.markers import MarkerRecord, MarkerSet
from qrdoc_toolkit.embedder.output.sink import DocumentSink, DrawingContext
from qrdoc_toolkit.embedder.resources.artifacts import Artifact, ArtifactError, ArtifactStore
from qrdoc_toolkit.embedder.resources.fonts import FontCache, FontHandle

from .config import GridConfig
from .models import Cursor, MarkerPlacement, PageCanvas, PlacementReport, SkippedMarker

logger = logging.getLogger(__name__)


class LayoutError(Exception):
    """A box cannot fit an empty page with the configured margins."""
    pass


def template_canvas(sink: DocumentSink, margin: float) -> PageCanvas:
    """Geometry appended pages copy: the document's first page."""
    width, height = sink.page_size(0)
    return PageCanvas(width=width, height=height, margin=margin)


class _PagePass:
    """Mutable state of one source page's placement pass."""

    def __init__(
        self,
        sink: DocumentSink,
        page_no: int,
        canvas: PageCanvas,
    ) -> None:
        self.sink = sink
        self.page_no = page_no
        self.page_index = page_no - 1
        self.canvas = canvas
        self.cursor = Cursor.at_origin(canvas)
        self.overflow = False
        self.placements: List[MarkerPlacement] = []
        self.context: DrawingContext = sink.open_context(self.page_index)

    def move_to_new_page(self, template: PageCanvas) -> None:
        """Close the current page and continue on a freshly appended one."""
        self.context.close()
        self.page_index = self.sink.append_page(template.width, template.height)
        self.canvas = template
        self.cursor = Cursor.at_origin(template)
        self.overflow = True
        self.context = self.sink.open_context(self.page_index)


class GridPlacer:
    """
    Places markers onto their owning pages.

    One placer serves one run: it shares the run's font cache and
    artifact store with the index pass.

    Example:
        >>> placer = GridPlacer(GridConfig(), FontCache(), ArtifactStore())
        >>> report = placer.place_all(sink, marker_set)
        >>> len(report.placements)
        12
    """

    def __init__(
        self,
        config: GridConfig,
        font_cache: FontCache,
        artifacts: ArtifactStore,
    ) -> None:
        self.config = config
        self.font_cache = font_cache
        self.artifacts = artifacts

    def place_all(
        self,
        sink: DocumentSink,
        marker_set: MarkerSet,
        report: Optional[PlacementReport] = None,
    ) -> PlacementReport:
        """
        Place every page's markers, pages in ascending order.

        Pages outside ``[1, page_count]`` are skipped whole and reported.
        The valid range is fixed by the page count before any overflow
        page is appended.

        Args:
            sink: Open document to draw into
            marker_set: Markers to place
            report: Report to append to (a new one when None)

        Returns:
            The report, holding placements, skips and overflow pages

        Raises:
            LayoutError: If a marker cannot fit an empty page
            ResourceError: If the label font cannot be loaded
            DocumentClosedError: If the document is closed
        """
        report = report if report is not None else PlacementReport()
        sink.ensure_open()
        page_count = sink.page_count
        template: Optional[PageCanvas] = None

        for page_no, markers in marker_set.items():
            if not 1 <= page_no <= page_count:
                reason = f"page {page_no} is outside the document (1-{page_count})"
                logger.warning(f"Skipping {len(markers)} marker(s): {reason}")
                report.skipped.append(SkippedMarker(
                    page_no=page_no,
                    kind="page_out_of_range",
                    reason=reason,
                    count=len(markers),
                ))
                continue

            if template is None:
                template = template_canvas(sink, self.config.margin)
            self.place_page(sink, page_no, markers, report, template=template)

        logger.info(
            f"Placed {len(report.placements)} marker(s), "
            f"{len(report.overflow_pages)} overflow page(s) appended"
        )
        return report

    def place_page(
        self,
        sink: DocumentSink,
        page_no: int,
        markers: Sequence[MarkerRecord],
        report: PlacementReport,
        template: Optional[PageCanvas] = None,
    ) -> List[MarkerPlacement]:
        """
        Place one page's markers in stored order, overflowing as needed.

        Markers are consumed from a work queue, so each is placed at most
        once and order is kept across page boundaries.

        Returns:
            Placements made for this page (also appended to ``report``)
        """
        if not markers:
            return []

        size = self.config.marker_size
        template = template or template_canvas(sink, self.config.margin)
        if not template.fits(size, size):
            raise LayoutError(
                f"Marker size {size:g} cannot fit an empty {template.width:g}x{template.height:g} "
                f"page with margin {template.margin:g}"
            )

        font = self.font_cache.get(sink)
        width, height = sink.page_size(page_no - 1)
        state = _PagePass(sink, page_no, PageCanvas(width, height, self.config.margin))
        queue: Deque[MarkerRecord] = deque(markers)

        try:
            while queue:
                marker = queue.popleft()
                try:
                    artifact = self.artifacts.resolve(marker.artifact_ref)
                except ArtifactError as e:
                    logger.warning(f"Skipping {marker} on page {page_no}: {e}")
                    report.skipped.append(SkippedMarker(
                        page_no=page_no,
                        kind="artifact_unavailable",
                        reason=str(e),
                        marker=marker,
                    ))
                    continue

                self._advance(state, template, report, font)
                placement = self._draw(state, marker, artifact, font)
                state.placements.append(placement)
                report.placements.append(placement)
                state.cursor.x += self.config.column_pitch
        finally:
            state.context.close()

        logger.debug(
            f"Page {page_no}: placed {len(state.placements)} of {len(markers)} marker(s)"
        )
        return state.placements

    def _advance(
        self,
        state: _PagePass,
        template: PageCanvas,
        report: PlacementReport,
        font: FontHandle,
    ) -> None:
        """Move the cursor to a slot where the next marker fits."""
        size = self.config.marker_size
        canvas = state.canvas
        cursor = state.cursor

        if canvas.fits(size, size):
            if cursor.x + size > canvas.width - canvas.margin:
                cursor.x = canvas.margin
                cursor.y -= self.config.row_pitch
            if cursor.y - size >= canvas.margin:
                return

        # The template always fits one marker, so a fresh page needs no further checks
        state.move_to_new_page(template)
        report.overflow_pages.append(state.page_index)
        logger.info(f"Page {state.page_no} overflowed onto new page {state.page_index + 1}")

        if self.config.overflow_header:
            state.context.draw_text(
                template.margin,
                template.height - template.margin / 2,
                f"Page {state.page_no} (continued)",
                font,
                self.config.header_font_size,
            )

    def _draw(
        self,
        state: _PagePass,
        marker: MarkerRecord,
        artifact: Artifact,
        font: FontHandle,
    ) -> MarkerPlacement:
        cfg = self.config
        size = cfg.marker_size
        x, y = state.cursor.x, state.cursor.y
        ctx = state.context

        if cfg.draw_border:
            ctx.draw_rect(x, y - size, size, size, cfg.border_width)
        ctx.draw_image(artifact, x, y - size, size, size)
        ctx.draw_text(x + cfg.label_inset, y - size - cfg.label_offset, marker.label, font, cfg.label_font_size)

        logger.debug(f"Drew {marker} on page {state.page_index + 1} at ({x:g}, {y:g})")
        return MarkerPlacement(
            marker=marker,
            page_index=state.page_index,
            x=x,
            y=y,
            size=size,
            overflow=state.overflow,
        )
