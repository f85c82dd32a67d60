"""
Module: embedder.layout.config

Purpose:
    Configuration for the two layout modes.
    Defines marker size, spacing, margins, and text settings for the
    per-page grid and the appended index table.

Key Classes:
    - GridConfig: Per-page marker grid (immutable)
    - IndexConfig: Index table pages (immutable)

Dependencies:
    - dataclasses (std)

Used By:
    - embedder.layout.grid: GridPlacer
    - embedder.layout.index: IndexPaginator
    - embedder.config: EmbedConfig
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


# All lengths are PDF points (1/72 inch)
DEFAULT_MARKER_SIZE = 100
DEFAULT_MARGIN = 50
INDEX_COLUMN_COUNT = 3


@dataclass(frozen=True)
class GridConfig:
    """
    Configuration for placing markers onto their owning pages (immutable).

    Attributes:
        marker_size: Side length S of the square marker box
        horizontal_spacing: Gap Sx between boxes in a row
        vertical_spacing: Gap Sy between rows
        margin: Page margin M on all four sides
        label_offset: Label baseline distance below the box
        label_inset: Label indent from the box's left edge
        label_font_size: Label font size
        border_width: Stroke width of the box border
        draw_border: Whether to stroke the box border
        overflow_header: Whether overflow pages get a "Page n (continued)" line
        header_font_size: Font size of that line

    Example:
        >>> config = GridConfig()
        >>> config.row_pitch
        130
    """

    marker_size: float = DEFAULT_MARKER_SIZE
    horizontal_spacing: float = 20
    vertical_spacing: float = 30
    margin: float = DEFAULT_MARGIN

    label_offset: float = 15
    label_inset: float = 5
    label_font_size: float = 10

    border_width: float = 0.5
    draw_border: bool = True

    overflow_header: bool = True
    header_font_size: float = 12

    def __post_init__(self) -> None:
        """Validate configuration on construction."""
        if self.marker_size <= 0:
            raise ValueError(f"marker_size must be positive: {self.marker_size}")
        if self.horizontal_spacing < 0:
            raise ValueError(f"horizontal_spacing must be non-negative: {self.horizontal_spacing}")
        if self.vertical_spacing < 0:
            raise ValueError(f"vertical_spacing must be non-negative: {self.vertical_spacing}")
        if self.margin < 0:
            raise ValueError(f"margin must be non-negative: {self.margin}")
        if self.label_font_size <= 0 or self.header_font_size <= 0:
            raise ValueError("font sizes must be positive")
        if self.border_width < 0:
            raise ValueError(f"border_width must be non-negative: {self.border_width}")

    @property
    def column_pitch(self) -> float:
        """Horizontal cursor advance per marker (S + Sx)."""
        return self.marker_size + self.horizontal_spacing

    @property
    def row_pitch(self) -> float:
        """Vertical cursor drop per row wrap (S + Sy)."""
        return self.marker_size + self.vertical_spacing


@dataclass(frozen=True)
class IndexConfig:
    """
    Configuration for the appended index table (immutable).

    The table is always three columns wide; each cell is a third of the
    usable page width and ``cell_height`` tall.

    Attributes:
        enabled: Whether to append index pages at all
        column_count: Fixed at 3
        cell_height: Height of one table cell
        margin: Page margin on all four sides
        title: Title drawn once, on the first index page
        title_font_size: Title font size
        title_rise: Title baseline height above the top margin line
        title_gap: Vertical space the title consumes before the first row
        caption_font_size: "Page n" caption font size
        label_font_size: Label font size
        border_width: Cell border stroke width
        info_page: Whether a document summary page precedes the table
        info_title_font_size: Summary title font size
        info_line_gaps: Baseline drops below the summary title for the count and timestamp lines
    """

    enabled: bool = True
    column_count: int = INDEX_COLUMN_COUNT
    cell_height: float = 150
    margin: float = DEFAULT_MARGIN

    title: str = "QR Codes Index"
    title_font_size: float = 16
    title_rise: float = 20
    title_gap: float = 50

    caption_font_size: float = 12
    label_font_size: float = 10
    border_width: float = 1.0

    info_page: bool = False
    info_title_font_size: float = 16
    info_count_font_size: float = 12
    info_timestamp_font_size: float = 10
    info_line_gaps: Tuple[float, float] = (30, 50)

    # Cell interior offsets
    caption_drop: float = 20
    image_padding_x: float = 20
    image_padding_y: float = 60
    image_lift: float = 30
    label_lift: float = 10
    text_inset: float = 5

    def __post_init__(self) -> None:
        """Validate configuration on construction."""
        if self.column_count != INDEX_COLUMN_COUNT:
            raise ValueError(
                f"column_count is fixed at {INDEX_COLUMN_COUNT}: {self.column_count}"
            )
        if self.cell_height <= 0:
            raise ValueError(f"cell_height must be positive: {self.cell_height}")
        if self.margin < 0:
            raise ValueError(f"margin must be non-negative: {self.margin}")
        if self.title_gap < 0:
            raise ValueError(f"title_gap must be non-negative: {self.title_gap}")
        if self.cell_height <= self.image_padding_y:
            raise ValueError(
                f"cell_height must exceed image_padding_y ({self.image_padding_y}): {self.cell_height}"
            )
