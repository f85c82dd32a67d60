"""
Module: embedder.controller

Purpose:
    Orchestrate a complete embed run.
    Open → Place markers → Append index → Save → Report

Key Functions:
    - embed_markers(): Run the engine on an already open document
    - embed_into_pdf(): Open a PDF file, run, save and close it

Key Classes:
    - EmbedResult: Complete run result
    - EmbedError: Exception for document I/O failures

Dependencies:
    - fitz (PyMuPDF): Opening input PDFs
    - embedder.layout: GridPlacer, IndexPaginator
    - embedder.resources: FontCache, ArtifactStore
    - embedder.output: PdfDocumentSink

Used By:
    - cli: ``qrdoc embed``
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, replace
from datetime import datetime
from pathlib import Path
from typing import Optional, Tuple

import fitz

from qrdoc_toolkit.core.models.markers import MarkerSet

from .config import EmbedConfig
from .layout import GridPlacer, IndexPaginator
from .layout.models import IndexPlacement, MarkerPlacement, PlacementReport, SkippedMarker
from .output.sink import DocumentSink, PdfDocumentSink, SinkError
from .resources import ArtifactStore, FontCache
from .timing import TimingLog, timed_phase

logger = logging.getLogger(__name__)


class EmbedError(Exception):
    """Error opening or saving a document."""
    pass


@dataclass(frozen=True)
class EmbedResult:
    """
    Complete embed result (immutable).

    Attributes:
        output_path: Saved PDF, or None when the caller persists the document
        original_page_count: Pages before the run
        overflow_pages: 0-based indices of appended overflow pages
        index_pages: 0-based indices of appended index pages
        final_page_count: Pages after the run
        placements: Markers drawn onto document pages, in draw order
        index_placements: Index cells, in draw order
        skipped: Markers and pages that were not drawn
        warnings: Human readable skip messages
        timings: Phase durations in seconds

    Example:
        >>> result = embed_into_pdf(Path("in.pdf"), markers, Path("out.pdf"))
        >>> print(f"{len(result.placements)} markers, {result.final_page_count} pages")
    """
    output_path: Optional[Path]
    original_page_count: int
    overflow_pages: Tuple[int, ...]
    index_pages: Tuple[int, ...]
    final_page_count: int
    placements: Tuple[MarkerPlacement, ...]
    index_placements: Tuple[IndexPlacement, ...]
    skipped: Tuple[SkippedMarker, ...]
    warnings: Tuple[str, ...]
    timings: dict

    @property
    def skipped_count(self) -> int:
        """Total number of records not drawn."""
        return sum(s.count for s in self.skipped)


def embed_markers(
    sink: DocumentSink,
    marker_set: MarkerSet,
    config: Optional[EmbedConfig] = None,
    *,
    font_cache: Optional[FontCache] = None,
    artifacts: Optional[ArtifactStore] = None,
    document_name: Optional[str] = None,
) -> EmbedResult:
    """
    Run the engine on an open document.

    Pipeline:
    1. Place each page's markers, pages ascending (overflow pages appended)
    2. Append index pages for every marker actually drawn

    The document is mutated in place; persisting and closing it is the
    caller's job.

    Args:
        sink: Open document to draw into
        marker_set: Markers to place
        config: Run configuration (defaults when None)
        font_cache: Font cache for this run (a new one when None)
        artifacts: Artifact store for this run (a new one when None)
        document_name: Name shown on the index summary page, when enabled

    Returns:
        EmbedResult with ``output_path`` None

    Raises:
        LayoutError: If a marker or index cell cannot fit an empty page
        ResourceError: If the font cannot be loaded
        SinkError: If the document is closed or a context is misused
    """
    config = config or EmbedConfig()
    font_cache = font_cache or FontCache(config.font_path, config.builtin_font)
    artifacts = artifacts or ArtifactStore()
    timings = TimingLog()
    report = PlacementReport()

    sink.ensure_open()
    original_page_count = sink.page_count
    logger.info(
        f"Embedding {len(marker_set)} marker(s) on {len(marker_set.page_numbers())} page(s) "
        f"into a {original_page_count}-page document"
    )

    with timed_phase(timings, "grid"):
        GridPlacer(config.grid, font_cache, artifacts).place_all(sink, marker_set, report)

    if config.index.enabled and report.placements:
        with timed_phase(timings, "index"):
            IndexPaginator(config.index, font_cache, artifacts).paginate(
                sink, report.placed_markers, report, document_name=document_name
            )
    elif not report.placements:
        logger.info("No markers drawn, index skipped")

    for warning in report.warnings:
        logger.debug(f"Reported: {warning}")

    return _build_result(sink, report, original_page_count, timings, output_path=None)


def embed_into_pdf(
    input_pdf: Path,
    marker_set: MarkerSet,
    output_pdf: Path,
    config: Optional[EmbedConfig] = None,
    *,
    artifact_base: Optional[Path] = None,
) -> EmbedResult:
    """
    Embed markers into a PDF file and save the result.

    Args:
        input_pdf: Source PDF (not modified)
        marker_set: Markers to place
        output_pdf: Destination; ``.pdf`` is appended when missing
        config: Run configuration (defaults when None)
        artifact_base: Directory relative artifact references resolve against

    Returns:
        EmbedResult with ``output_path`` set

    Raises:
        EmbedError: If the input cannot be opened or the output cannot be saved
        LayoutError / ResourceError / SinkError: As for ``embed_markers``

    Example:
        >>> markers = load_manifest(Path("QrCodes.json"))
        >>> result = embed_into_pdf(Path("doc.pdf"), markers, Path("out/doc_qr"))
        >>> result.output_path
        PosixPath('out/doc_qr.pdf')
    """
    config = config or EmbedConfig()
    input_pdf = Path(input_pdf)
    output_pdf = Path(output_pdf)
    if output_pdf.suffix.lower() != ".pdf":
        output_pdf = output_pdf.with_name(output_pdf.name + ".pdf")
    if output_pdf.resolve() == input_pdf.resolve():
        raise EmbedError(f"Output would overwrite the input PDF: {input_pdf}")

    try:
        document = fitz.open(input_pdf)
    except (FileNotFoundError, RuntimeError) as e:
        raise EmbedError(f"Failed to open PDF {input_pdf}: {e}") from e

    try:
        sink = PdfDocumentSink(document)
    except SinkError as e:
        document.close()
        raise EmbedError(f"Cannot embed into {input_pdf}: {e}") from e

    try:
        result = embed_markers(
            sink,
            marker_set,
            config,
            artifacts=ArtifactStore(artifact_base),
            document_name=input_pdf.stem,
        )
        timings = TimingLog(dict(result.timings))
        with timed_phase(timings, "save"):
            try:
                sink.save(output_pdf)
            except (OSError, RuntimeError, ValueError) as e:
                raise EmbedError(f"Failed to save PDF {output_pdf}: {e}") from e
    finally:
        if not sink.is_closed:
            if sink.active_context is not None:
                sink.active_context.close()
            sink.close()

    result = replace(result, output_path=output_pdf, timings=timings.to_dict()["phases"])
    logger.debug(timings.summary())

    if config.write_report:
        report_path = write_report(result, input_pdf)
        logger.info(f"Wrote run report to {report_path}")

    logger.info(
        f"Embedded {len(result.placements)} marker(s) into {output_pdf} "
        f"({result.final_page_count} pages, {result.skipped_count} skipped)"
    )
    return result


def write_report(result: EmbedResult, input_pdf: Optional[Path] = None) -> Path:
    """
    Write ``<output stem>_report.json`` beside the output PDF.

    Raises:
        ValueError: If the result has no output path
    """
    if result.output_path is None:
        raise ValueError("Result has no output path to write a report beside")

    report_path = result.output_path.with_name(f"{result.output_path.stem}_report.json")
    with open(report_path, "w", encoding="utf-8") as f:
        json.dump(_build_report(result, input_pdf), f, indent=2)
    return report_path


def _build_result(
    sink: DocumentSink,
    report: PlacementReport,
    original_page_count: int,
    timings: TimingLog,
    output_path: Optional[Path],
) -> EmbedResult:
    return EmbedResult(
        output_path=output_path,
        original_page_count=original_page_count,
        overflow_pages=tuple(report.overflow_pages),
        index_pages=tuple(report.index_pages),
        final_page_count=sink.page_count,
        placements=tuple(report.placements),
        index_placements=tuple(report.index_placements),
        skipped=tuple(report.skipped),
        warnings=tuple(report.warnings),
        timings=timings.to_dict()["phases"],
    )


def _build_report(result: EmbedResult, input_pdf: Optional[Path]) -> dict:
    """
    Build the JSON run report.

    Pages are 1-indexed for humans.
    """
    return {
        "generated_at": datetime.now().isoformat(),
        "input_pdf": str(input_pdf) if input_pdf else None,
        "output_pdf": str(result.output_path),
        "original_page_count": result.original_page_count,
        "final_page_count": result.final_page_count,
        "overflow_pages": [i + 1 for i in result.overflow_pages],
        "index_pages": [i + 1 for i in result.index_pages],
        "placements": [
            {
                "page": p.page_index + 1,
                "source_page": p.marker.page_no,
                "link": p.marker.link,
                "label": p.marker.label,
                "x": p.x,
                "y": p.y,
                "size": p.size,
                "overflow": p.overflow,
            }
            for p in result.placements
        ],
        "index": [
            {
                "page": p.page_index + 1,
                "row": p.row,
                "column": p.column,
                "source_page": p.marker.page_no,
                "link": p.marker.link,
            }
            for p in result.index_placements
        ],
        "skipped": [
            {
                "page": s.page_no,
                "kind": s.kind,
                "reason": s.reason,
                "link": s.marker.link if s.marker else None,
                "count": s.count,
            }
            for s in result.skipped
        ],
        "timings": result.timings,
    }
