"""
Module: embedder.output.sink

Purpose:
    The mutable in-memory document the layout engine draws into.
    Owns the drawing-context lifecycle: at most one context is open at a
    time, and it must be closed before a page is appended, the document is
    saved, or the document is closed.

Key Classes:
    - DocumentSink: Abstract document interface used by the layout engine
    - DrawingContext: Abstract per-page drawing surface
    - PdfDocumentSink / PdfDrawingContext: PyMuPDF-backed implementation
    - SinkError, DocumentClosedError, DrawingContextError: Lifecycle failures

Coordinates:
    Callers pass PDF user space (origin bottom-left, y up). The PyMuPDF
    implementation flips to its top-left system when drawing.

Dependencies:
    - fitz (PyMuPDF): PDF page creation and drawing

Used By:
    - embedder.layout.grid: Draws markers, appends overflow pages
    - embedder.layout.index: Appends and draws index pages
    - embedder.controller: Opens, saves and closes documents
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional, Set, Tuple

import fitz

from qrdoc_toolkit.embedder.resources.artifacts import Artifact
from qrdoc_toolkit.embedder.resources.fonts import FontHandle

logger = logging.getLogger(__name__)

BLACK = (0, 0, 0)


class SinkError(Exception):
    """Base class for document sink failures."""
    pass


class DocumentClosedError(SinkError):
    """The document handle is invalid or was closed prematurely."""
    pass


class DrawingContextError(SinkError):
    """A drawing context was misused (double-open, use after close, ...)."""
    pass


class DrawingContext(ABC):
    """
    Drawing surface for one page.

    Obtain through ``DocumentSink.open_context()``; use as a context
    manager so it is always closed.
    """

    def __init__(self, sink: DocumentSink, page_index: int) -> None:
        self.sink = sink
        self.page_index = page_index
        self._open = True

    @property
    def closed(self) -> bool:
        """True once ``close()`` has run."""
        return not self._open

    def draw_rect(self, x: float, y: float, width: float, height: float, line_width: float) -> None:
        """Stroke a rectangle whose bottom-left corner is ``(x, y)``."""
        self._check_open()
        self._draw_rect(x, y, width, height, line_width)

    def draw_image(self, artifact: Artifact, x: float, y: float, width: float, height: float) -> None:
        """Draw ``artifact`` scaled into the box with bottom-left ``(x, y)``."""
        self._check_open()
        self._draw_image(artifact, x, y, width, height)

    def draw_text(self, x: float, y: float, text: str, font: FontHandle, size: float) -> None:
        """Draw one line of text with its baseline starting at ``(x, y)``."""
        self._check_open()
        if text:
            self._draw_text(x, y, text, font, size)

    def close(self) -> None:
        """Flush pending content and release the page. Idempotent."""
        if not self._open:
            return
        try:
            self._commit()
        finally:
            self._open = False
            self.sink._release_context(self)

    def __enter__(self) -> DrawingContext:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _check_open(self) -> None:
        if not self._open:
            raise DrawingContextError(f"Drawing context for page {self.page_index + 1} is closed")

    @abstractmethod
    def _draw_rect(self, x: float, y: float, width: float, height: float, line_width: float) -> None:
        """Backend rectangle stroke."""

    @abstractmethod
    def _draw_image(self, artifact: Artifact, x: float, y: float, width: float, height: float) -> None:
        """Backend image placement."""

    @abstractmethod
    def _draw_text(self, x: float, y: float, text: str, font: FontHandle, size: float) -> None:
        """Backend text output."""

    @abstractmethod
    def _commit(self) -> None:
        """Backend flush of pending content."""


class DocumentSink(ABC):
    """
    Abstract paginated document the engine draws into.

    Enforces the context lifecycle for every backend:
    - one open DrawingContext at a time
    - no page append, save or close while a context is open
    - no operation at all once the document is closed
    """

    def __init__(self) -> None:
        self._active: Optional[DrawingContext] = None

    # ─────────────────────────────────────────────────────────────────────
    # Backend interface
    # ─────────────────────────────────────────────────────────────────────

    @property
    @abstractmethod
    def page_count(self) -> int:
        """Current number of pages."""

    @property
    @abstractmethod
    def is_closed(self) -> bool:
        """True once the underlying document is closed."""

    @abstractmethod
    def _page_size(self, index: int) -> Tuple[float, float]:
        """Backend ``(width, height)`` of a page."""

    @abstractmethod
    def _append_page(self, width: float, height: float) -> int:
        """Backend page append; returns the new 0-based index."""

    @abstractmethod
    def _new_context(self, index: int) -> DrawingContext:
        """Backend context construction."""

    @abstractmethod
    def bind_font(self, font: FontHandle) -> None:
        """Make ``font`` available to every page of this document."""

    # ─────────────────────────────────────────────────────────────────────
    # Lifecycle-checked operations
    # ─────────────────────────────────────────────────────────────────────

    @property
    def active_context(self) -> Optional[DrawingContext]:
        """The currently open context, if any."""
        return self._active

    def ensure_open(self) -> None:
        """Raise DocumentClosedError if the document is closed."""
        if self.is_closed:
            raise DocumentClosedError("Document handle is closed")

    def page_size(self, index: int) -> Tuple[float, float]:
        """``(width, height)`` of the page at 0-based ``index``."""
        self.ensure_open()
        self._check_index(index)
        return self._page_size(index)

    def append_page(self, width: float, height: float) -> int:
        """
        Append a blank page at the end of the document.

        Raises:
            DrawingContextError: If a context is still open
        """
        self.ensure_open()
        if self._active is not None:
            raise DrawingContextError(
                f"Close the drawing context for page {self._active.page_index + 1} before appending a page"
            )
        index = self._append_page(width, height)
        logger.debug(f"Appended page {index + 1} ({width:g}x{height:g})")
        return index

    def open_context(self, index: int) -> DrawingContext:
        """
        Open the drawing context for a page.

        Raises:
            DrawingContextError: If another context is still open
        """
        self.ensure_open()
        self._check_index(index)
        if self._active is not None:
            raise DrawingContextError(
                f"Drawing context for page {self._active.page_index + 1} is still open"
            )
        self._active = self._new_context(index)
        return self._active

    def _release_context(self, context: DrawingContext) -> None:
        if self._active is context:
            self._active = None

    def _check_index(self, index: int) -> None:
        if not 0 <= index < self.page_count:
            raise IndexError(f"Page index {index} out of range (document has {self.page_count} pages)")

    def _check_idle(self, action: str) -> None:
        if self._active is not None:
            raise DrawingContextError(
                f"Close the drawing context for page {self._active.page_index + 1} before {action}"
            )


# ─────────────────────────────────────────────────────────────────────────────
# PyMuPDF implementation
# ─────────────────────────────────────────────────────────────────────────────

class PdfDrawingContext(DrawingContext):
    """
    PyMuPDF drawing context.

    Vector and text output is batched in a ``fitz.Shape``; the shape is
    committed before each image and on close so content keeps draw order.
    """

    def __init__(self, sink: PdfDocumentSink, page_index: int) -> None:
        super().__init__(sink, page_index)
        self._page = sink.document[page_index]
        self._height = self._page.rect.height
        self._shape = self._page.new_shape()
        self._dirty = False

    def _rect(self, x: float, y: float, width: float, height: float) -> fitz.Rect:
        top = self._height - (y + height)
        return fitz.Rect(x, top, x + width, top + height)

    def _draw_rect(self, x, y, width, height, line_width) -> None:
        self._shape.draw_rect(self._rect(x, y, width, height))
        self._shape.finish(width=line_width, color=BLACK, fill=None)
        self._dirty = True

    def _draw_image(self, artifact, x, y, width, height) -> None:
        self._flush()
        rect = self._rect(x, y, width, height)
        xref = self.sink.image_xref(artifact.ref)
        if xref:
            self._page.insert_image(rect, xref=xref, keep_proportion=False)
        else:
            xref = self._page.insert_image(rect, stream=artifact.data, keep_proportion=False)
            self.sink.remember_image(artifact.ref, xref)

    def _draw_text(self, x, y, text, font, size) -> None:
        self.sink.ensure_font_on_page(self._page, font)
        self._shape.insert_text(
            fitz.Point(x, self._height - y),
            text,
            fontsize=size,
            fontname=font.name,
            color=BLACK,
        )
        self._dirty = True

    def _commit(self) -> None:
        self._flush()

    def _flush(self) -> None:
        if self._dirty:
            self._shape.commit()
            self._shape = self._page.new_shape()
            self._dirty = False


class PdfDocumentSink(DocumentSink):
    """
    DocumentSink over an open ``fitz.Document``.

    The caller owns the document: open it, hand it in, and call
    ``save()``/``close()`` when done.

    Example:
        >>> with PdfDocumentSink.open(Path("input.pdf")) as sink:
        ...     run_engine(sink)
        ...     sink.save(Path("output.pdf"))
    """

    def __init__(self, document: fitz.Document) -> None:
        super().__init__()
        if document.is_closed:
            raise DocumentClosedError("Cannot wrap a closed document")
        if not document.is_pdf:
            raise SinkError("Only PDF documents can be annotated")
        self.document = document
        self._font: Optional[FontHandle] = None
        self._font_pages: Set[int] = set()
        self._image_xrefs: Dict[str, int] = {}

    @classmethod
    def open(cls, path: Path) -> PdfDocumentSink:
        """Open a PDF file from disk."""
        return cls(fitz.open(path))

    @classmethod
    def new(cls) -> PdfDocumentSink:
        """Start an empty in-memory PDF."""
        return cls(fitz.open())

    @property
    def page_count(self) -> int:
        return 0 if self.document.is_closed else self.document.page_count

    @property
    def is_closed(self) -> bool:
        return self.document.is_closed

    def _page_size(self, index: int) -> Tuple[float, float]:
        rect = self.document[index].rect
        return (rect.width, rect.height)

    def _append_page(self, width: float, height: float) -> int:
        self.document.new_page(width=width, height=height)
        return self.document.page_count - 1

    def _new_context(self, index: int) -> DrawingContext:
        return PdfDrawingContext(self, index)

    def bind_font(self, font: FontHandle) -> None:
        self._font = font
        self._font_pages.clear()

    def ensure_font_on_page(self, page: fitz.Page, font: FontHandle) -> None:
        """Register an embedded font with ``page`` the first time it is used there."""
        if font.is_builtin or page.number in self._font_pages:
            return
        page.insert_font(fontname=font.name, fontbuffer=font.buffer)
        self._font_pages.add(page.number)

    def image_xref(self, ref: str) -> int:
        """Xref of an already embedded artifact, or 0."""
        return self._image_xrefs.get(ref, 0)

    def remember_image(self, ref: str, xref: int) -> None:
        """Record the xref an artifact was embedded under."""
        self._image_xrefs[ref] = xref

    def save(self, path: Path) -> Path:
        """
        Write the document to ``path``.

        Raises:
            DrawingContextError: If a context is still open
        """
        self.ensure_open()
        self._check_idle("saving")
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.document.save(path, garbage=3, deflate=True)
        logger.info(f"PDF saved successfully to: {path}")
        return path

    def close(self) -> None:
        """Close the document. Idempotent."""
        if self.document.is_closed:
            return
        self._check_idle("closing the document")
        self.document.close()
        self._image_xrefs.clear()
        logger.debug("PDF document closed")

    def __enter__(self) -> PdfDocumentSink:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._active is not None:
            self._active.close()
        self.close()
