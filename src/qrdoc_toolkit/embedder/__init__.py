"""
Module: embedder

Purpose:
    Embed markers into an existing PDF: each marker drawn onto its own
    page in a grid, overflow pages where a page runs out of room, and an
    index table appended at the end.

Key Functions:
    - embed_into_pdf(): File in, file out
    - embed_markers(): Run on an already open document

Key Classes:
    - EmbedConfig: Run configuration
    - EmbedResult: What was drawn, skipped and appended

Dependencies:
    - fitz (PyMuPDF): PDF editing
    - PIL: Artifact verification

Used By:
    - cli: ``qrdoc embed``
"""

from .config import EmbedConfig
from .controller import EmbedError, EmbedResult, embed_into_pdf, embed_markers

__all__ = [
    "EmbedConfig",
    "EmbedError",
    "EmbedResult",
    "embed_into_pdf",
    "embed_markers",
]
