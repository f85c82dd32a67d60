"""
Module: embedder.layout.index

Purpose:
    Append the index: a three-column table of every drawn marker, in
    global page-ascending order, on pages added after the last content
    page. The title appears on the first index page only. An optional
    summary page (document name, marker count, generation time) can
    precede the table.

Key Classes:
    - IndexPaginator: Builds the index pages

Algorithm:
    Cell i goes to row i // 3, column i % 3. A new row starts every three
    cells; when the new row's bottom would cross the bottom margin, the
    current page is closed and a fresh index page is appended. A partial
    last row is left as-is.

Dependencies:
    - embedder.layout.config: IndexConfig
    - embedder.layout.models: PageCanvas, IndexPlacement, PlacementReport
    - embedder.resources: FontCache, ArtifactStore
    - embedder.output.sink: DocumentSink

Used By:
    - embedder.controller: Second pass of an embed run
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from qrdoc_toolkit.core.models.markers import MarkerRecord
from qrdoc_toolkit.embedder.output.sink import DocumentSink, DrawingContext
from qrdoc_toolkit.embedder.resources.artifacts import ArtifactError, ArtifactStore
from qrdoc_toolkit.embedder.resources.fonts import FontCache, FontHandle

from .config import IndexConfig
from .grid import LayoutError, template_canvas
from .models import IndexPlacement, PageCanvas, PlacementReport

logger = logging.getLogger(__name__)


class IndexPaginator:
    """
    Lays out the index table across appended pages.

    Example:
        >>> paginator = IndexPaginator(IndexConfig(), font_cache, artifacts)
        >>> placements = paginator.paginate(sink, report.placed_markers, report)
        >>> placements[0].column
        0
    """

    def __init__(
        self,
        config: IndexConfig,
        font_cache: FontCache,
        artifacts: ArtifactStore,
    ) -> None:
        self.config = config
        self.font_cache = font_cache
        self.artifacts = artifacts

    def cell_width(self, canvas: PageCanvas) -> float:
        """Width of one column: a third of the usable width."""
        return canvas.usable_width / self.config.column_count

    def image_side(self, cell_width: float) -> float:
        """Side of the square image inside a cell."""
        cfg = self.config
        return min(cell_width - cfg.image_padding_x, cfg.cell_height - cfg.image_padding_y)

    def paginate(
        self,
        sink: DocumentSink,
        markers: Sequence[MarkerRecord],
        report: Optional[PlacementReport] = None,
        document_name: Optional[str] = None,
    ) -> List[IndexPlacement]:
        """
        Append index pages for ``markers``, in the order given.

        Callers pass markers in global order: pages ascending, stored
        order within a page. Nothing is appended when ``markers`` is
        empty or the index is disabled. With ``info_page`` on, a summary
        page naming ``document_name`` is appended before the table.

        Returns:
            Placements of every index cell (also appended to ``report``)

        Raises:
            LayoutError: If a cell cannot fit below the title on an empty index page
        """
        report = report if report is not None else PlacementReport()
        if not self.config.enabled or not markers:
            return []

        cfg = self.config
        canvas = template_canvas(sink, cfg.margin)
        cell_width = self.cell_width(canvas)
        # The first row sits below the title
        first_row_height = canvas.usable_height - cfg.title_gap
        if cell_width <= cfg.image_padding_x or cfg.cell_height > first_row_height:
            raise LayoutError(
                f"Index cell {cell_width:g}x{cfg.cell_height:g} cannot fit below the title on an empty "
                f"{canvas.width:g}x{canvas.height:g} page with margin {canvas.margin:g}"
            )

        font = self.font_cache.get(sink)
        placements: List[IndexPlacement] = []

        if cfg.info_page:
            self._add_info_page(sink, canvas, report, document_name, len(markers), font)

        page_index = self._new_page(sink, canvas, report)
        context = sink.open_context(page_index)
        try:
            _, y = canvas.origin
            context.draw_text(
                canvas.margin,
                canvas.height - canvas.margin + cfg.title_rise,
                cfg.title,
                font,
                cfg.title_font_size,
            )
            y -= cfg.title_gap

            for i, marker in enumerate(markers):
                row, column = divmod(i, cfg.column_count)
                if column == 0:
                    if i > 0:
                        y -= cfg.cell_height
                    if y - cfg.cell_height < canvas.margin:
                        context.close()
                        page_index = self._new_page(sink, canvas, report)
                        context = sink.open_context(page_index)
                        _, y = canvas.origin

                x = canvas.margin + column * cell_width
                image_rect = self._draw_cell(context, marker, x, y, cell_width, font)
                placement = IndexPlacement(
                    marker=marker,
                    page_index=page_index,
                    row=row,
                    column=column,
                    x=x,
                    y=y,
                    cell_width=cell_width,
                    cell_height=cfg.cell_height,
                    image_rect=image_rect,
                )
                placements.append(placement)
                report.index_placements.append(placement)
        finally:
            context.close()

        logger.info(
            f"Index: {len(placements)} entries on {len(report.index_pages)} page(s)"
        )
        return placements

    def _new_page(self, sink: DocumentSink, canvas: PageCanvas, report: PlacementReport) -> int:
        page_index = sink.append_page(canvas.width, canvas.height)
        report.index_pages.append(page_index)
        logger.debug(f"Appended index page {page_index + 1}")
        return page_index

    def _add_info_page(
        self,
        sink: DocumentSink,
        canvas: PageCanvas,
        report: PlacementReport,
        document_name: Optional[str],
        total: int,
        font: FontHandle,
    ) -> int:
        """Append the summary page: document name, marker count, timestamp."""
        cfg = self.config
        page_index = self._new_page(sink, canvas, report)
        top = canvas.height - canvas.margin
        count_gap, timestamp_gap = cfg.info_line_gaps
        generated_on = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

        with sink.open_context(page_index) as context:
            context.draw_text(
                canvas.margin, top,
                f"QR Code Index for: {document_name or 'untitled document'}",
                font, cfg.info_title_font_size,
            )
            context.draw_text(
                canvas.margin, top - count_gap,
                f"Total QR Codes: {total}", font, cfg.info_count_font_size,
            )
            context.draw_text(
                canvas.margin, top - timestamp_gap,
                f"Generated on: {generated_on}", font, cfg.info_timestamp_font_size,
            )

        logger.info(f"Added document info page {page_index + 1}")
        return page_index

    def _draw_cell(
        self,
        context: DrawingContext,
        marker: MarkerRecord,
        x: float,
        y: float,
        cell_width: float,
        font: FontHandle,
    ) -> Tuple[float, float, float, float]:
        """Draw one cell whose top-left corner is ``(x, y)``; return the image box."""
        cfg = self.config
        bottom = y - cfg.cell_height

        context.draw_rect(x, bottom, cell_width, cfg.cell_height, cfg.border_width)
        context.draw_text(
            x + cfg.text_inset, y - cfg.caption_drop,
            f"Page {marker.page_no}", font, cfg.caption_font_size,
        )

        side = self.image_side(cell_width)
        image_x = x + (cell_width - side) / 2
        image_y = bottom + cfg.image_lift
        try:
            artifact = self.artifacts.resolve(marker.artifact_ref)
        except ArtifactError as e:
            # Cell keeps its slot so the table stays aligned
            logger.warning(f"Index entry for {marker} drawn without image: {e}")
        else:
            context.draw_image(artifact, image_x, image_y, side, side)

        context.draw_text(
            x + cfg.text_inset, bottom + cfg.label_lift,
            marker.label, font, cfg.label_font_size,
        )
        return (image_x, image_y, image_x + side, image_y + side)
