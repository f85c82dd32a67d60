"""
Unit tests for the per-page grid placer.

Geometry is checked against an in-memory recording sink; coordinates are
PDF user space with ``y`` the top edge of each marker box.
"""

import pytest

from qrdoc_toolkit.core.models.markers import MarkerRecord, MarkerSet
from qrdoc_toolkit.embedder.layout import GridConfig, GridPlacer, LayoutError, PlacementReport
from qrdoc_toolkit.embedder.resources import ArtifactStore, FontCache


def _placer(**overrides) -> GridPlacer:
    return GridPlacer(GridConfig(**overrides), FontCache(), ArtifactStore())


def _coords(report: PlacementReport):
    return [(p.page_index, p.x, p.y) for p in report.placements]


# ============================================================================
# Row-major placement
# ============================================================================

class TestRowWrap:

    def test_place_all_when_six_markers_on_600_wide_page_then_four_per_row(self, recording_sink, make_markers):
        """4 * 120 = 480 <= 500 usable, so the 5th marker wraps."""
        sink = recording_sink([(600, 800)])
        placer = _placer(marker_size=100, horizontal_spacing=20, vertical_spacing=20, margin=50)

        report = placer.place_all(sink, make_markers({1: 6}))

        assert _coords(report) == [
            (0, 50, 750), (0, 170, 750), (0, 290, 750), (0, 410, 750),
            (0, 50, 630), (0, 170, 630),
        ]
        assert report.placements[0].y - report.placements[4].y == 120
        assert report.overflow_pages == []
        assert sink.page_count == 1

    def test_place_all_when_marker_drawn_then_border_image_and_label_positions(self, recording_sink, make_markers, sample_image):
        sink = recording_sink([(600, 800)])

        _placer().place_all(sink, make_markers({1: 1}))

        draws = [op for op in sink.ops if op[0] in ("rect", "image", "text")]
        assert draws == [
            ("rect", 0, 50, 650, 100, 100),
            ("image", 0, str(sample_image), 50, 650, 100, 100),
            ("text", 0, "link0", 55, 635, 10),
        ]

    def test_place_all_when_border_disabled_then_no_rects(self, recording_sink, make_markers):
        sink = recording_sink([(600, 800)])

        _placer(draw_border=False).place_all(sink, make_markers({1: 3}))

        assert not [op for op in sink.ops if op[0] == "rect"]
        assert len(sink.images()) == 3


# ============================================================================
# Overflow
# ============================================================================

class TestOverflow:

    def test_place_page_when_page_too_short_for_one_marker_then_one_overflow_page(self, recording_sink, make_markers):
        """Page 2 is 2*M + S - 1 tall; the marker goes to a page shaped like page 1."""
        sink = recording_sink([(600, 800), (600, 2 * 50 + 100 - 1)])

        report = _placer().place_all(sink, make_markers({2: 1}))

        assert report.overflow_pages == [2]
        assert sink.page_count == 3
        placement = report.placements[0]
        assert (placement.page_index, placement.x, placement.bottom) == (2, 50, 800 - 50 - 100)
        assert placement.overflow is True

    def test_place_page_when_rows_exhausted_then_continues_on_new_page(self, recording_sink, make_markers):
        """Default spacing gives 5 rows of 4 on a 600x800 page."""
        sink = recording_sink([(600, 800)])

        report = _placer().place_all(sink, make_markers({1: 25}))

        assert [p.page_index for p in report.placements] == [0] * 20 + [1] * 5
        assert (report.placements[20].x, report.placements[20].y) == (50, 750)
        assert report.overflow_pages == [1]

    def test_place_page_when_overflowing_then_pages_appended_at_end(self, recording_sink, make_markers):
        sink = recording_sink([(600, 800)] * 3)

        report = _placer().place_all(sink, make_markers({1: 21, 3: 2}))

        assert report.overflow_pages == [3]
        assert [p.page_index for p in report.placements if p.marker.page_no == 3] == [2, 2]
        assert report.placements[20].page_index == 3

    def test_place_page_when_overflowing_then_writes_continued_header(self, recording_sink, make_markers):
        sink = recording_sink([(600, 800)])

        _placer().place_all(sink, make_markers({1: 21}))

        assert ("text", 1, "Page 1 (continued)", 50, 775, 12) in sink.ops

    def test_place_page_when_header_disabled_then_no_header(self, recording_sink, make_markers):
        sink = recording_sink([(600, 800)])

        _placer(overflow_header=False).place_all(sink, make_markers({1: 21}))

        assert not [t for t in sink.texts() if "continued" in t[1]]

    def test_place_page_when_overflowing_then_context_closed_before_append(self, recording_sink, make_markers):
        sink = recording_sink([(600, 800)])

        _placer().place_all(sink, make_markers({1: 21}))

        kinds = [op[:2] for op in sink.ops if op[0] in ("open", "commit", "append")]
        assert kinds == [("open", 0), ("commit", 0), ("append", 1), ("open", 1), ("commit", 1)]
        assert sink.active_context is None

    def test_place_page_when_many_overflows_then_no_recursion_limit(self, recording_sink, make_markers):
        sink = recording_sink([(600, 800)])

        report = _placer().place_all(sink, make_markers({1: 20 * 60}))

        assert len(report.placements) == 1200
        assert len(report.overflow_pages) == 59


# ============================================================================
# Skips and fatal errors
# ============================================================================

class TestSkipsAndErrors:

    def test_place_all_when_page_beyond_document_then_skipped_and_reported(self, recording_sink, make_markers):
        sink = recording_sink([(600, 800)])

        report = _placer().place_all(sink, make_markers({1: 1, 2: 2}))

        assert len(report.placements) == 1
        assert sink.page_count == 1
        assert len(report.skipped) == 1
        skip = report.skipped[0]
        assert (skip.page_no, skip.kind, skip.count) == (2, "page_out_of_range", 2)
        assert report.skipped_count == 2
        assert "page 2" in report.warnings[0]

    def test_place_all_when_page_out_of_range_then_warning_logged(self, recording_sink, make_markers, caplog):
        sink = recording_sink([(600, 800)])

        with caplog.at_level("WARNING"):
            _placer().place_all(sink, make_markers({5: 1}))

        assert "outside the document" in caplog.text

    def test_place_all_when_range_checked_then_uses_original_page_count(self, recording_sink, make_markers):
        """Overflow pages from page 1 must not make page 2 valid."""
        sink = recording_sink([(600, 800)])

        report = _placer().place_all(sink, make_markers({1: 21, 2: 1}))

        assert report.skipped[0].page_no == 2
        assert sink.page_count == 2

    def test_place_page_when_artifact_missing_then_skips_without_using_slot(self, recording_sink, sample_image, tmp_path):
        sink = recording_sink([(600, 800)])
        ms = MarkerSet.from_records([
            MarkerRecord(1, "https://example.com/a", str(sample_image)),
            MarkerRecord(1, "https://example.com/b", str(tmp_path / "missing.png")),
            MarkerRecord(1, "https://example.com/c", str(sample_image)),
        ])

        report = _placer().place_all(sink, ms)

        assert [p.marker.link for p in report.placements] == ["https://example.com/a", "https://example.com/c"]
        assert report.placements[1].x == 170
        assert report.skipped[0].kind == "artifact_unavailable"
        assert report.skipped[0].marker.link == "https://example.com/b"

    def test_place_page_when_artifact_not_an_image_then_skipped(self, recording_sink, tmp_path):
        bogus = tmp_path / "not_image.png"
        bogus.write_text("hello", encoding="utf-8")
        sink = recording_sink([(600, 800)])
        ms = MarkerSet.from_records([MarkerRecord(1, "https://example.com/a", str(bogus))])

        report = _placer().place_all(sink, ms)

        assert report.placements == []
        assert report.skipped[0].kind == "artifact_unavailable"

    def test_place_page_when_marker_larger_than_page_then_raises(self, recording_sink, make_markers):
        sink = recording_sink([(600, 800)])

        with pytest.raises(LayoutError, match="cannot fit"):
            _placer(marker_size=501).place_all(sink, make_markers({1: 1}))

        assert sink.page_count == 1
        assert sink.active_context is None

    def test_place_page_when_marker_exactly_fills_usable_area_then_fits(self, recording_sink, make_markers):
        sink = recording_sink([(600, 600)])

        report = _placer(marker_size=500).place_all(sink, make_markers({1: 2}))

        assert _coords(report) == [(0, 50, 550), (1, 50, 550)]


# ============================================================================
# Invariants
# ============================================================================

class TestInvariants:

    @pytest.fixture
    def mixed_run(self, recording_sink, make_markers):
        sink = recording_sink([(600, 800), (400, 500), (612, 792)])
        ms = make_markers({3: 7, 1: 30, 2: 9})
        return sink, ms, _placer().place_all(sink, ms)

    def test_invariant_when_run_then_every_marker_drawn_once_in_order(self, mixed_run):
        _, ms, report = mixed_run

        assert report.placed_markers == list(ms)

    def test_invariant_when_run_then_boxes_inside_margins(self, mixed_run):
        sink, _, report = mixed_run

        for p in report.placements:
            width, height = sink.sizes[p.page_index]
            assert p.x >= 50
            assert p.x + p.size <= width - 50
            assert p.y - p.size >= 50
            assert p.y <= height - 50

    def test_invariant_when_run_twice_then_identical(self, recording_sink, make_markers):
        ms = make_markers({3: 7, 1: 30, 2: 9})
        first = recording_sink([(600, 800), (400, 500), (612, 792)])
        second = recording_sink([(600, 800), (400, 500), (612, 792)])

        a = _placer().place_all(first, ms)
        b = _placer().place_all(second, ms)

        assert _coords(a) == _coords(b)
        assert first.page_count == second.page_count

    def test_place_all_when_several_pages_then_font_loaded_once(self, recording_sink, make_markers):
        sink = recording_sink([(600, 800)] * 3)
        cache = FontCache()

        GridPlacer(GridConfig(), cache, ArtifactStore()).place_all(sink, make_markers({1: 2, 2: 2, 3: 2}))

        assert cache.loads == 1
        assert len(sink.bound_fonts) == 1
