"""
Module: embedder.config

Purpose:
    Top-level configuration for an embed run. Immutable configuration
    with validation on construction.

Key Classes:
    - EmbedConfig: Layout settings plus font and report options

Dependencies:
    - dataclasses (std)
    - pathlib (std)
    - embedder.layout.config: GridConfig, IndexConfig

Used By:
    - embedder.controller: Run orchestration
    - cli: Built from command line flags
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from qrdoc_toolkit.embedder.layout.config import GridConfig, IndexConfig
from qrdoc_toolkit.embedder.resources.fonts import DEFAULT_BUILTIN_FONT


@dataclass(frozen=True)
class EmbedConfig:
    """
    Configuration for embedding markers into a document (immutable).

    Attributes:
        grid: Per-page marker grid settings
        index: Index table settings
        font_path: TrueType/OpenType file for all text; None uses ``builtin_font``
        builtin_font: Base-14 font name used when no file is given
        write_report: Whether ``embed_into_pdf`` writes ``<stem>_report.json``

    Example:
        >>> config = EmbedConfig(grid=GridConfig(marker_size=80))
        >>> config.index.enabled
        True
    """

    grid: GridConfig = field(default_factory=GridConfig)
    index: IndexConfig = field(default_factory=IndexConfig)

    font_path: Optional[Path] = None
    builtin_font: str = DEFAULT_BUILTIN_FONT

    write_report: bool = True

    def __post_init__(self) -> None:
        """Validate configuration on construction."""
        if self.font_path is not None and not isinstance(self.font_path, Path):
            object.__setattr__(self, "font_path", Path(self.font_path))
        if not self.builtin_font:
            raise ValueError("builtin_font must be non-empty")
