"""
Module: extractor

Purpose:
    Hyperlink extraction from source PDFs.
"""

from .links import dedupe_across_pages, extract_page_links, extract_text_links

__all__ = [
    "dedupe_across_pages",
    "extract_page_links",
    "extract_text_links",
]
