"""
Module: extractor.links

Purpose:
    Collect the hyperlinks in a PDF, page by page, as input for marker
    generation. Link annotations come first, then URLs written out in the
    page text.

Key Functions:
    - extract_page_links(): Page number -> links found on that page
    - extract_text_links(): URLs in a block of text
    - dedupe_across_pages(): Keep each link only on its first page

Dependencies:
    - fitz (PyMuPDF): Link annotations and text extraction

Used By:
    - cli: ``qrdoc links``
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, Iterable, List

import fitz

logger = logging.getLogger(__name__)

URL_PATTERN = re.compile(r"https?://[\w.-]+(?:/[\w\-._~:/?#@!$&'()*+,;=%]*)?", re.IGNORECASE)

# Sentence punctuation that commonly trails a URL in running text
TRAILING_PUNCTUATION = ".,;:!?)'"


def extract_text_links(text: str) -> List[str]:
    """
    Find ``http(s)://`` URLs in ``text``, in reading order.

    Example:
        >>> extract_text_links("See https://example.com/docs. Or http://a.org")
        ['https://example.com/docs', 'http://a.org']
    """
    if not text:
        return []
    return [m.group().rstrip(TRAILING_PUNCTUATION) for m in URL_PATTERN.finditer(text)]


def _unique(links: Iterable[str]) -> List[str]:
    seen = set()
    result = []
    for link in links:
        if link and link not in seen:
            seen.add(link)
            result.append(link)
    return result


def extract_page_links(pdf_path: Path) -> Dict[int, List[str]]:
    """
    Extract links from every page of a PDF.

    Per page: URI link annotations first, then URLs in the page text,
    de-duplicated keeping first-seen order. Pages without links are
    omitted.

    Args:
        pdf_path: PDF to read

    Returns:
        1-based page number -> links, pages ascending

    Raises:
        FileNotFoundError: If ``pdf_path`` does not exist
    """
    pdf_path = Path(pdf_path)
    if not pdf_path.is_file():
        raise FileNotFoundError(f"PDF not found: {pdf_path}")

    result: Dict[int, List[str]] = {}
    with fitz.open(pdf_path) as doc:
        for page in doc:
            annotated = [
                link.get("uri", "")
                for link in page.get_links()
                if link.get("kind") == fitz.LINK_URI
            ]
            written = extract_text_links(page.get_text("text"))
            links = _unique(annotated + written)
            if links:
                result[page.number + 1] = links
                logger.debug(f"Page {page.number + 1}: {len(links)} link(s)")

    logger.info(
        f"Found {sum(len(v) for v in result.values())} link(s) on {len(result)} page(s) of {pdf_path.name}"
    )
    return result


def dedupe_across_pages(page_links: Dict[int, List[str]]) -> Dict[int, List[str]]:
    """
    Keep each link only on the first page it appears on.

    Pages left empty are dropped.

    Example:
        >>> dedupe_across_pages({1: ["a", "b"], 2: ["b"], 3: ["c", "a"]})
        {1: ['a', 'b'], 3: ['c']}
    """
    seen = set()
    result: Dict[int, List[str]] = {}
    for page_no in sorted(page_links):
        kept = []
        for link in page_links[page_no]:
            if link not in seen:
                seen.add(link)
                kept.append(link)
        if kept:
            result[page_no] = kept
    return result
