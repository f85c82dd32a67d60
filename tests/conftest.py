import pytest
import sys
from pathlib import Path
from typing import List, Tuple

import fitz
from PIL import Image

# Add src to sys.path so we can import qrdoc_toolkit
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if SRC_PATH.as_posix() not in sys.path:
    sys.path.insert(0, SRC_PATH.as_posix())

from qrdoc_toolkit.core.models.markers import MarkerRecord, MarkerSet
from qrdoc_toolkit.embedder.output.sink import DocumentSink, DrawingContext


# ─────────────────────────────────────────────────────────────────────────────
# In-memory sink for geometry tests
# ─────────────────────────────────────────────────────────────────────────────

class RecordingContext(DrawingContext):
    """Records draw calls as tuples on the owning sink."""

    def _draw_rect(self, x, y, width, height, line_width):
        self.sink.ops.append(("rect", self.page_index, x, y, width, height))

    def _draw_image(self, artifact, x, y, width, height):
        self.sink.ops.append(("image", self.page_index, artifact.ref, x, y, width, height))

    def _draw_text(self, x, y, text, font, size):
        self.sink.ops.append(("text", self.page_index, text, x, y, size))

    def _commit(self):
        self.sink.ops.append(("commit", self.page_index))


class RecordingSink(DocumentSink):
    """DocumentSink over a list of page sizes; draws are recorded, not rendered."""

    def __init__(self, sizes: List[Tuple[float, float]]):
        super().__init__()
        self.sizes = list(sizes)
        self.ops: list = []
        self.bound_fonts: list = []
        self.closed = False

    @property
    def page_count(self):
        return len(self.sizes)

    @property
    def is_closed(self):
        return self.closed

    def _page_size(self, index):
        return self.sizes[index]

    def _append_page(self, width, height):
        self.sizes.append((width, height))
        self.ops.append(("append", len(self.sizes) - 1))
        return len(self.sizes) - 1

    def _new_context(self, index):
        self.ops.append(("open", index))
        return RecordingContext(self, index)

    def bind_font(self, font):
        self.bound_fonts.append(font)

    def images(self):
        """``(page_index, ref, x, y, w, h)`` of every drawn image."""
        return [op[1:] for op in self.ops if op[0] == "image"]

    def texts(self):
        """``(page_index, text, x, y, size)`` of every drawn text."""
        return [op[1:] for op in self.ops if op[0] == "text"]


@pytest.fixture
def recording_sink():
    """Factory: ``recording_sink([(600, 800), ...])``."""
    return RecordingSink


# ─────────────────────────────────────────────────────────────────────────────
# Artifacts and markers
# ─────────────────────────────────────────────────────────────────────────────

@pytest.fixture
def sample_image(tmp_path: Path):
    """Create a small PNG artifact."""
    img = Image.new("RGB", (64, 64), color="white")
    for i in range(0, 64, 8):
        img.putpixel((i, i), (0, 0, 0))
    img_path = tmp_path / "qr.png"
    img.save(img_path)
    return img_path


@pytest.fixture
def sample_jpeg(tmp_path: Path):
    """Create a small JPEG artifact."""
    img = Image.new("RGB", (48, 48), color="gray")
    img_path = tmp_path / "qr.jpg"
    img.save(img_path, format="JPEG")
    return img_path


@pytest.fixture
def make_markers(sample_image: Path):
    """Factory: ``make_markers({page_no: count})`` -> MarkerSet with distinct links."""
    def _create(counts: dict, artifact: Path = sample_image) -> MarkerSet:
        marker_set = MarkerSet()
        for page_no, count in counts.items():
            for i in range(count):
                marker_set.add(MarkerRecord(
                    page_no=page_no,
                    link=f"https://example.com/p{page_no}/link{i}",
                    artifact_ref=str(artifact),
                ))
        return marker_set
    return _create


# ─────────────────────────────────────────────────────────────────────────────
# PDFs
# ─────────────────────────────────────────────────────────────────────────────

@pytest.fixture
def make_pdf(tmp_path: Path):
    """Factory: ``make_pdf([(w, h), ...], name)`` -> path of a PDF with one text line per page."""
    def _create(sizes: List[Tuple[float, float]], name: str = "input.pdf") -> Path:
        doc = fitz.open()
        for i, (w, h) in enumerate(sizes, start=1):
            page = doc.new_page(width=w, height=h)
            page.insert_text((72, 72), f"Source page {i}", fontsize=11)
        path = tmp_path / name
        doc.save(path)
        doc.close()
        return path
    return _create
