"""
Module: embedder.resources.fonts

Purpose:
    Lazy, once-per-document font loading for label and caption text.
    The cache belongs to one engine run; it reloads whenever it is asked
    for a font on a different (or closed and reopened) document.

Key Classes:
    - FontCache: Per-run font cache keyed by the target document
    - FontHandle: Loaded font plus the resource name pages refer to it by
    - ResourceNotFound / ResourceLoadError: Font failures (run-fatal)

Dependencies:
    - fitz (PyMuPDF): Font decoding and text metrics

Used By:
    - embedder.layout.grid: Marker labels
    - embedder.layout.index: Captions, labels, title
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import fitz

if TYPE_CHECKING:
    from qrdoc_toolkit.embedder.output.sink import DocumentSink

logger = logging.getLogger(__name__)

# Times Roman, matching the typeface markers have always been labelled in
DEFAULT_BUILTIN_FONT = "tiro"
EMBEDDED_FONT_NAME = "F-qrdoc"


class ResourceError(Exception):
    """Base class for drawing resource failures."""
    pass


class ResourceNotFound(ResourceError):
    """The backing font resource could not be located."""
    pass


class ResourceLoadError(ResourceError):
    """The font resource was located but could not be read or decoded."""
    pass


@dataclass(frozen=True)
class FontHandle:
    """
    A loaded font ready for drawing (immutable).

    Attributes:
        name: Resource name pages use to refer to the font
        font: Decoded font, used for text metrics
        buffer: Font file bytes to embed; None for base-14 fonts
        source: Path or builtin name the font came from
    """

    name: str
    font: fitz.Font
    buffer: Optional[bytes]
    source: str

    @property
    def is_builtin(self) -> bool:
        """True for base-14 fonts that need no embedding."""
        return self.buffer is None

    def text_length(self, text: str, size: float) -> float:
        """Rendered width of ``text`` at ``size``."""
        return self.font.text_length(text, fontsize=size)


class FontCache:
    """
    Run-scoped font cache.

    ``get(document)`` loads on first call and returns the same handle for
    every later call against the same open document. Asking with another
    document, or after the cached document was closed, reloads.

    Example:
        >>> cache = FontCache(Path("fonts/times.ttf"))
        >>> handle = cache.get(sink)
        >>> cache.get(sink) is handle
        True
    """

    def __init__(
        self,
        font_path: Optional[Path] = None,
        builtin: str = DEFAULT_BUILTIN_FONT,
    ) -> None:
        self.font_path = Path(font_path) if font_path is not None else None
        self.builtin = builtin
        self.loads = 0
        self._handle: Optional[FontHandle] = None
        self._owner: Optional[DocumentSink] = None

    def get(self, document: DocumentSink) -> FontHandle:
        """
        Return the font bound to ``document``, loading it if needed.

        Raises:
            ResourceNotFound: If the font file or builtin name does not exist
            ResourceLoadError: If the font exists but cannot be decoded
            DocumentClosedError: If ``document`` is closed
        """
        document.ensure_open()

        if self._handle is not None and self._owner is document and not document.is_closed:
            return self._handle

        if self._handle is not None:
            logger.debug("Target document changed, rebuilding font cache")

        handle = self._load()
        document.bind_font(handle)
        self._handle = handle
        self._owner = document
        self.loads += 1
        return handle

    def invalidate(self) -> None:
        """Forget the cached handle."""
        self._handle = None
        self._owner = None

    def _load(self) -> FontHandle:
        if self.font_path is not None:
            return self._load_file(self.font_path)
        return self._load_builtin(self.builtin)

    @staticmethod
    def _load_file(path: Path) -> FontHandle:
        if not path.is_file():
            raise ResourceNotFound(f"Font file not found: {path}")

        logger.info(f"Loading font '{path.name}' for the first time...")
        try:
            buffer = path.read_bytes()
        except OSError as e:
            raise ResourceLoadError(f"Failed to read font file '{path}': {e}") from e

        try:
            font = fitz.Font(fontbuffer=buffer)
        except Exception as e:
            raise ResourceLoadError(
                f"Failed to load font from '{path.name}'. Ensure the font is a valid TrueType/OpenType file."
            ) from e

        return FontHandle(name=EMBEDDED_FONT_NAME, font=font, buffer=buffer, source=str(path))

    @staticmethod
    def _load_builtin(name: str) -> FontHandle:
        if name.lower() not in fitz.Base14_fontdict:
            raise ResourceNotFound(f"Unknown builtin font: {name!r}")

        try:
            font = fitz.Font(name)
        except Exception as e:
            raise ResourceLoadError(f"Failed to load builtin font {name!r}") from e

        return FontHandle(name=name, font=font, buffer=None, source=name)
