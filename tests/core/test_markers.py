"""
Unit Tests for Marker Models

Tests for MarkerRecord validation, label derivation and MarkerSet ordering.
"""

import dataclasses
import pytest

from qrdoc_toolkit.core.models.markers import (
    InvalidMarker,
    MarkerRecord,
    MarkerSet,
    UNKNOWN_LABEL,
    derive_label,
)


class TestDeriveLabel:
    """Tests for derive_label."""

    def test_derive_label_when_path_link_then_returns_last_segment_truncated(self):
        assert derive_label("https://example.com/docs/getting-started") == "getting"

    def test_derive_label_when_trailing_slash_then_ignores_it(self):
        assert derive_label("https://example.com/docs/") == "docs"

    def test_derive_label_when_short_segment_then_returns_it_whole(self):
        assert derive_label("https://example.com/a/faq") == "faq"

    def test_derive_label_when_empty_then_returns_unknown(self):
        assert derive_label("") == UNKNOWN_LABEL

    def test_derive_label_when_only_slashes_then_returns_unknown(self):
        assert derive_label("///") == UNKNOWN_LABEL

    def test_derive_label_when_custom_length_then_truncates_to_it(self):
        assert derive_label("https://example.com/abcdefghij", max_length=3) == "abc"


class TestMarkerRecord:
    """Tests for MarkerRecord construction and equality."""

    def test_record_when_no_label_then_derives_from_link(self):
        record = MarkerRecord(2, "https://example.com/a/intro", "qr/p2/intro.png")

        assert record.label == "intro"

    def test_record_when_empty_label_then_kept_blank(self):
        record = MarkerRecord(1, "https://example.com/a/intro", "qr.png", label="")

        assert record.label == ""

    @pytest.mark.parametrize("page_no", [0, -1])
    def test_record_when_page_below_one_then_raises(self, page_no):
        with pytest.raises(InvalidMarker, match="page number"):
            MarkerRecord(page_no, "https://example.com", "qr.png")

    def test_record_when_page_not_int_then_raises(self):
        with pytest.raises(InvalidMarker):
            MarkerRecord("1", "https://example.com", "qr.png")

    def test_record_when_page_is_bool_then_raises(self):
        with pytest.raises(InvalidMarker):
            MarkerRecord(True, "https://example.com", "qr.png")

    def test_record_when_empty_link_then_raises(self):
        with pytest.raises(InvalidMarker, match="Link"):
            MarkerRecord(1, "", "qr.png")

    def test_record_when_empty_artifact_then_raises(self):
        with pytest.raises(InvalidMarker, match="Artifact"):
            MarkerRecord(1, "https://example.com", "")

    def test_record_when_labels_differ_then_still_equal(self):
        a = MarkerRecord(1, "https://example.com/x", "qr.png", label="one")
        b = MarkerRecord(1, "https://example.com/x", "qr.png", label="two")

        assert a == b
        assert hash(a) == hash(b)

    def test_record_when_artifact_differs_then_not_equal(self):
        a = MarkerRecord(1, "https://example.com/x", "a.png")
        b = MarkerRecord(1, "https://example.com/x", "b.png")

        assert a != b

    def test_with_label_when_called_then_returns_relabelled_copy(self):
        record = MarkerRecord(1, "https://example.com/x", "qr.png")

        relabelled = record.with_label("Intro")

        assert relabelled.label == "Intro"
        assert record.label == "x"
        assert relabelled == record

    def test_label_when_assigned_directly_then_frozen_instance_error(self):
        record = MarkerRecord(1, "https://example.com/x", "qr.png")

        with pytest.raises(dataclasses.FrozenInstanceError):
            record.label = "Intro"

    def test_with_label_when_none_then_raises(self):
        record = MarkerRecord(1, "https://example.com/x", "qr.png")

        with pytest.raises(InvalidMarker):
            record.with_label(None)

    def test_with_artifact_when_called_then_keeps_label(self):
        record = MarkerRecord(1, "https://example.com/x", "old/qr.png", label="keep")

        moved = record.with_artifact("new/qr.png")

        assert moved.artifact_ref == "new/qr.png"
        assert moved.label == "keep"


class TestMarkerSet:
    """Tests for MarkerSet ordering and validation."""

    def test_marker_set_when_pages_added_out_of_order_then_iterates_ascending(self):
        p3 = MarkerRecord(3, "https://example.com/c", "c.png")
        p1a = MarkerRecord(1, "https://example.com/a", "a.png")
        p1b = MarkerRecord(1, "https://example.com/b", "b.png")
        p10 = MarkerRecord(10, "https://example.com/d", "d.png")

        ms = MarkerSet.from_records([p10, p3, p1a, p1b])

        assert ms.page_numbers() == [1, 3, 10]
        assert list(ms) == [p1a, p1b, p3, p10]

    def test_marker_set_when_page_has_many_then_keeps_insertion_order(self):
        records = [MarkerRecord(2, f"https://example.com/{i}", f"{i}.png") for i in range(5)]

        ms = MarkerSet.from_records(reversed(records))

        assert ms.markers_for(2) == tuple(reversed(records))

    def test_marker_set_when_record_filed_under_wrong_page_then_raises(self):
        record = MarkerRecord(2, "https://example.com/a", "a.png")

        with pytest.raises(InvalidMarker, match="belongs to page 2"):
            MarkerSet({1: [record]})

    def test_marker_set_when_non_record_added_then_raises(self):
        with pytest.raises(InvalidMarker):
            MarkerSet().add({"page": 1})

    def test_marker_set_when_empty_then_falsy_with_zero_length(self):
        ms = MarkerSet()

        assert not ms
        assert len(ms) == 0
        assert ms.markers_for(1) == ()

    def test_map_records_when_transform_given_then_returns_new_set(self):
        ms = MarkerSet.from_records([MarkerRecord(1, "https://example.com/a", "a.png")])

        mapped = ms.map_records(lambda r: r.with_label("X"))

        assert mapped.markers_for(1)[0].label == "X"
        assert ms.markers_for(1)[0].label == "a"

    def test_equality_when_same_records_then_equal(self):
        records = [MarkerRecord(1, "https://example.com/a", "a.png")]

        assert MarkerSet.from_records(records) == MarkerSet({1: records})
