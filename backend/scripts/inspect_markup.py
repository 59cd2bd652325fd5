"""Inspect a saved Google Maps directions page.

Usage:
    python -m scripts.inspect_markup path/to/page.html
    python -m scripts.inspect_markup --destination "Hồ Gươm" --all --urls

Prints what the live extractor would return for the page, and optionally
every de-duplicated coordinate candidate and every embedded URL. Pages are
the ones the scraper saves under SCRAPE_HTML_DIR.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from services.coordinate_extractor import (
    RegionBounds,
    extract,
    extract_all,
    find_urls,
)
from settings import settings
from storage.file_storage import MarkupStorage

LOG = logging.getLogger("inspect_markup")


def _resolve_path(args: argparse.Namespace) -> Optional[Path]:
    if args.path:
        return Path(args.path)
    if args.destination:
        return MarkupStorage(settings.SCRAPE_HTML_DIR).latest_for(args.destination)
    return None


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("path", nargs="?", help="HTML file to inspect")
    parser.add_argument("--destination", help="use the latest saved page for this destination")
    parser.add_argument("--all", action="store_true", help="list every unique candidate")
    parser.add_argument("--urls", action="store_true", help="list embedded URLs")
    parser.add_argument("--no-region", action="store_true", help="disable the region filter for --all")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    path = _resolve_path(args)
    if path is None or not path.exists():
        LOG.error("No markup file found (path=%s destination=%s)", args.path, args.destination)
        return 1

    markup = path.read_text(encoding="utf-8")
    region = RegionBounds(*settings.SCRAPE_REGION_BBOX)
    fallback = args.destination or path.stem

    result = extract(markup, fallback, region=region)
    print(f"name:   {result.name}")
    print(f"coord:  {result.lat}, {result.lng}")
    print(f"source: {result.source.value}")

    if args.all:
        candidates = extract_all(markup, region=None if args.no_region else region)
        print(f"\n{len(candidates)} unique candidate(s):")
        for i, cand in enumerate(candidates, start=1):
            print(f"{i}. [{cand.lat:.6f}, {cand.lng:.6f}]  {cand.source.value}")

    if args.urls:
        urls = find_urls(markup)
        print(f"\n{len(urls)} URL(s):")
        for url in urls:
            print(url)
    return 0


if __name__ == "__main__":
    sys.exit(main())
