"""
Module: cli

Purpose:
    Command line entry point.

    qrdoc embed PDF MANIFEST -o OUTPUT   Draw manifest markers into a PDF
    qrdoc links PDF [-o JSON]            Dump the hyperlinks found in a PDF

Dependencies:
    - argparse (std)
    - embedder, extractor, core.utils

Used By:
    - ``qrdoc`` console script and ``python -m qrdoc_toolkit``
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from qrdoc_toolkit import __version__
from qrdoc_toolkit.core.models.markers import InvalidMarker
from qrdoc_toolkit.core.schemas.validator import ValidationError
from qrdoc_toolkit.core.utils.serialization import load_manifest
from qrdoc_toolkit.embedder import EmbedConfig, EmbedError, embed_into_pdf
from qrdoc_toolkit.embedder.layout import GridConfig, IndexConfig, LayoutError
from qrdoc_toolkit.embedder.output import SinkError
from qrdoc_toolkit.embedder.resources import ResourceError
from qrdoc_toolkit.extractor import dedupe_across_pages, extract_page_links

logger = logging.getLogger("qrdoc")

# Failures reported as a message and exit code 1 rather than a traceback
FATAL_ERRORS = (
    EmbedError,
    LayoutError,
    ResourceError,
    SinkError,
    ValidationError,
    InvalidMarker,
    ValueError,
    OSError,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="qrdoc",
        description="Embed QR code markers into PDF documents.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    embed = sub.add_parser("embed", parents=[common], help="Draw markers into a PDF and append an index")
    embed.add_argument("pdf", type=Path, help="Input PDF")
    embed.add_argument("manifest", type=Path, help="Marker manifest (JSON)")
    embed.add_argument("-o", "--output", type=Path, required=True, help="Output PDF (.pdf appended if missing)")
    embed.add_argument("--font", type=Path, help="TrueType/OpenType font for labels")
    embed.add_argument("--marker-size", type=float, default=GridConfig.marker_size, help="Marker side length in points")
    embed.add_argument("--margin", type=float, default=GridConfig.margin, help="Page margin in points")
    embed.add_argument("--cell-height", type=float, default=IndexConfig.cell_height, help="Index cell height in points")
    embed.add_argument("--no-index", action="store_true", help="Do not append index pages")
    embed.add_argument("--info-page", action="store_true", help="Add a document summary page before the index")
    embed.add_argument("--no-border", action="store_true", help="Do not stroke marker borders")
    embed.add_argument("--no-report", action="store_true", help="Do not write <output>_report.json")
    embed.set_defaults(handler=_run_embed)

    links = sub.add_parser("links", parents=[common], help="List hyperlinks per page as JSON")
    links.add_argument("pdf", type=Path, help="Input PDF")
    links.add_argument("-o", "--output", type=Path, help="Write JSON here instead of stdout")
    links.add_argument("--unique", action="store_true", help="Keep each link only on its first page")
    links.set_defaults(handler=_run_links)

    return parser


def _run_embed(args: argparse.Namespace) -> int:
    config = EmbedConfig(
        grid=GridConfig(
            marker_size=args.marker_size,
            margin=args.margin,
            draw_border=not args.no_border,
        ),
        index=IndexConfig(
            enabled=not args.no_index,
            info_page=args.info_page,
            cell_height=args.cell_height,
            margin=args.margin,
        ),
        font_path=args.font,
        write_report=not args.no_report,
    )
    markers = load_manifest(args.manifest)
    result = embed_into_pdf(
        args.pdf,
        markers,
        args.output,
        config,
        artifact_base=args.manifest.resolve().parent,
    )

    for warning in result.warnings:
        logger.warning(warning)
    logger.info(
        f"Wrote {result.output_path}: {len(result.placements)} marker(s), "
        f"{len(result.overflow_pages)} overflow page(s), {len(result.index_pages)} index page(s)"
    )
    return 0


def _run_links(args: argparse.Namespace) -> int:
    page_links = extract_page_links(args.pdf)
    if args.unique:
        page_links = dedupe_across_pages(page_links)

    payload = json.dumps({str(k): v for k, v in page_links.items()}, indent=2)
    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(payload + "\n", encoding="utf-8")
        logger.info(f"Wrote {args.output}")
    else:
        print(payload)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        return args.handler(args)
    except FATAL_ERRORS as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
