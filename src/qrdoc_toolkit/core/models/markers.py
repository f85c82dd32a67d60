"""
Module: markers

Purpose:
    Provides MarkerRecord and MarkerSet - the validated input consumed by the
    placement engine. A marker is one raster artifact (usually a QR code)
    plus a short label, tied to the page where its originating link was
    found.

Key Functions:
    - derive_label(link): Default label slug for a link
    - MarkerSet.from_records(records): Group records by page

Dependencies:
    - dataclasses (std)

Used By:
    - core.utils.serialization: Manifest load/save
    - embedder.layout: GridPlacer and IndexPaginator
    - embedder.controller: Run orchestration
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple


DEFAULT_LABEL_LENGTH = 7
UNKNOWN_LABEL = "Unknown"


class InvalidMarker(ValueError):
    """Raised when a marker record or marker set fails validation."""
    pass


def derive_label(link: str, max_length: int = DEFAULT_LABEL_LENGTH) -> str:
    """
    Derive the default label for a link.

    Takes the last ``/``-separated segment (trailing slashes ignored)
    and truncates it to ``max_length`` characters.

    Example:
        >>> derive_label("https://example.com/docs/getting-started")
        'getting'
        >>> derive_label("https://example.com/")
        'example'
    """
    if not link:
        return UNKNOWN_LABEL
    slug = link.rstrip("/").split("/")[-1]
    if not slug:
        return UNKNOWN_LABEL
    return slug[:max_length]


@dataclass(frozen=True)
class MarkerRecord:
    """
    One visual marker to place (immutable).

    Attributes:
        page_no: 1-based page the marker belongs to
        link: Encoded URI
        artifact_ref: Path/reference to the pre-rendered PNG or JPEG
        label: Annotation text; derived from ``link`` when not given.
            An explicit empty string is kept and renders blank.

    Invariants:
        - page_no >= 1
        - link and artifact_ref are non-empty
        - equality/hash ignore ``label``

    Records are frozen, including ``label``. Relabelling goes through
    ``with_label()``, which returns a new record; holders of the old
    record keep the old label.

    Example:
        >>> m = MarkerRecord(2, "https://example.com/a/intro", "qr/p2/intro.png")
        >>> m.label
        'intro'
    """

    page_no: int
    link: str
    artifact_ref: str
    label: Optional[str] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        """Validate record on construction."""
        if isinstance(self.page_no, bool) or not isinstance(self.page_no, int):
            raise InvalidMarker(f"Page number must be an integer: {self.page_no!r}")
        if self.page_no < 1:
            raise InvalidMarker(f"Invalid page number: {self.page_no}. Page number must be >= 1.")
        if not self.link:
            raise InvalidMarker("Link cannot be empty.")
        if not self.artifact_ref:
            raise InvalidMarker(f"Artifact reference cannot be empty (link {self.link!r}).")
        if self.label is None:
            object.__setattr__(self, "label", derive_label(self.link))

    def with_label(self, label: str) -> MarkerRecord:
        """Return a copy carrying a different label."""
        if label is None:
            raise InvalidMarker("Label cannot be None; use an empty string for a blank label.")
        return replace(self, label=label)

    def with_artifact(self, artifact_ref: str) -> MarkerRecord:
        """Return a copy pointing at a relocated artifact."""
        return replace(self, artifact_ref=str(artifact_ref))

    def __str__(self) -> str:
        link = self.link if len(self.link) <= 50 else self.link[:47] + "..."
        return f"MarkerRecord(page={self.page_no}, link='{link}', label='{self.label}')"


class MarkerSet:
    """
    Page number -> ordered marker records.

    Insertion order is preserved within a page; pages may be added in any
    order but are always iterated in ascending numeric order.

    Example:
        >>> ms = MarkerSet.from_records([rec_p3, rec_p1a, rec_p1b])
        >>> ms.page_numbers()
        [1, 3]
        >>> [m.page_no for m in ms]
        [1, 1, 3]
    """

    def __init__(self, pages: Optional[Mapping[int, Iterable[MarkerRecord]]] = None) -> None:
        self._pages: Dict[int, List[MarkerRecord]] = {}
        for page_no, records in (pages or {}).items():
            for record in records:
                if record.page_no != page_no:
                    raise InvalidMarker(
                        f"{record} filed under page {page_no} but belongs to page {record.page_no}"
                    )
                self.add(record)

    @classmethod
    def from_records(cls, records: Iterable[MarkerRecord]) -> MarkerSet:
        """Build a set from records, grouping by page in encounter order."""
        marker_set = cls()
        for record in records:
            marker_set.add(record)
        return marker_set

    def add(self, record: MarkerRecord) -> None:
        """Append a record to the end of its page's list."""
        if not isinstance(record, MarkerRecord):
            raise InvalidMarker(f"Expected MarkerRecord, got {type(record).__name__}")
        self._pages.setdefault(record.page_no, []).append(record)

    def page_numbers(self) -> List[int]:
        """Page numbers present, ascending."""
        return sorted(self._pages)

    def markers_for(self, page_no: int) -> Tuple[MarkerRecord, ...]:
        """Records for one page in stored order (empty when absent)."""
        return tuple(self._pages.get(page_no, ()))

    def items(self) -> Iterator[Tuple[int, Tuple[MarkerRecord, ...]]]:
        """Yield ``(page_no, records)`` in ascending page order."""
        for page_no in self.page_numbers():
            yield page_no, tuple(self._pages[page_no])

    def map_records(self, transform) -> MarkerSet:
        """Return a new set with ``transform`` applied to every record."""
        return MarkerSet.from_records(transform(record) for record in self)

    def __iter__(self) -> Iterator[MarkerRecord]:
        for _, records in self.items():
            yield from records

    def __len__(self) -> int:
        return sum(len(records) for records in self._pages.values())

    def __bool__(self) -> bool:
        return len(self) > 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MarkerSet):
            return NotImplemented
        return dict(self.items()) == dict(other.items())

    def __repr__(self) -> str:
        return f"MarkerSet(pages={self.page_numbers()}, markers={len(self)})"
