"""
Module: embedder.output

Purpose:
    The document the layout engine draws into.
"""

from .sink import (
    DocumentSink,
    DrawingContext,
    PdfDocumentSink,
    PdfDrawingContext,
    SinkError,
    DocumentClosedError,
    DrawingContextError,
)

__all__ = [
    "DocumentSink",
    "DrawingContext",
    "PdfDocumentSink",
    "PdfDrawingContext",
    "SinkError",
    "DocumentClosedError",
    "DrawingContextError",
]
