"""Coordinate extraction from Google Maps directions markup.

The directions page does not expose a documented payload, so coordinates are
recovered with a cascade of independent strategies, each looking at a
different part of the page:

1. ``APP_INITIALIZATION_STATE`` array literal (``[[[zoom, lng, lat], ...``)
2. protobuf-style URL data markers (``!2d<lng>!3d<lat>``, last one wins)
3. the ``markers=`` list of the ``og:image`` static-map preview (last pair wins)
4. a raw scan of ``[a, b]`` literals, gated by a regional bounding box

Strategies are tried in that order and the first hit wins. Everything here is
pure: no network, no filesystem.
"""
from __future__ import annotations

import html
import math
import re
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, List, Optional
from urllib.parse import unquote

from bs4 import BeautifulSoup

from domain.models import PlaceSource

_NUM = r"-?\d+(?:\.\d+)?"
_BANG = r"(?:!|%21)"

APP_INIT_STATE_RE = re.compile(
    r"APP_INITIALIZATION_STATE\s*=\s*\[\s*\[\s*\[\s*"
    rf"({_NUM})\s*,\s*({_NUM})\s*,\s*({_NUM})"
)
PROTOBUF_PAIR_RE = re.compile(rf"{_BANG}2d({_NUM}){_BANG}3d({_NUM})")
PROTOBUF_INVERSE_PAIR_RE = re.compile(rf"{_BANG}1d({_NUM}){_BANG}2i?d({_NUM})")
# [lat, lng] order, as in place URLs (!3d<lat>!4d<lng>)
PROTOBUF_LAT_LNG_RE = re.compile(rf"{_BANG}(?:3d|2d)({_NUM}){_BANG}(?:4d|1d)({_NUM})")
STATIC_MAP_CENTER_RE = re.compile(rf"center=({_NUM})(?:%2C|,)({_NUM})", re.IGNORECASE)
MARKERS_PARAM_RE = re.compile(r"markers=([^&\"'\s<>]+)")
MARKER_PAIR_RE = re.compile(rf"^\s*({_NUM})\s*,\s*({_NUM})\s*$")
ARRAY_PAIR_RE = re.compile(rf"\[\s*({_NUM})\s*,\s*({_NUM})\s*\]")
SITE_SUFFIX_RE = re.compile(r"\s*[-–|]\s*Google\s+Maps\s*$", re.IGNORECASE)
URL_RE = re.compile(
    r"(https?://[^\s\"'<>]+"
    r"|//[a-zA-Z0-9\-.]+\.[a-zA-Z]{2,}[^\s\"'<>]*"
    r"|(?<=\")/maps/[^\s\"'<>]*)"
)


@dataclass(frozen=True)
class RegionBounds:
    """Open latitude/longitude box used to reject numeric noise."""
    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    def contains(self, lat: float, lng: float) -> bool:
        return self.min_lat < lat < self.max_lat and self.min_lng < lng < self.max_lng


# Vietnam; zoom levels, scales and pixel offsets never fall inside it.
DEFAULT_REGION = RegionBounds(min_lat=8.0, max_lat=24.0, min_lng=102.0, max_lng=110.0)
# Slightly wider than the globe so the open bounds still admit +-90 / +-180.
WORLD = RegionBounds(min_lat=-90.1, max_lat=90.1, min_lng=-180.1, max_lng=180.1)


@dataclass(frozen=True)
class Candidate:
    lat: float
    lng: float
    source: PlaceSource

    @property
    def key(self) -> str:
        return f"{self.lat:.6f},{self.lng:.6f}"


@dataclass(frozen=True)
class Extraction:
    lat: Optional[float]
    lng: Optional[float]
    name: str
    source: PlaceSource

    @property
    def found(self) -> bool:
        return self.source is not PlaceSource.NOT_FOUND


Strategy = Callable[[str], Optional[Candidate]]


def is_valid_coordinate(lat: float, lng: float) -> bool:
    """Mathematical bounds check, inclusive at the poles and antimeridian."""
    if lat is None or lng is None:
        return False
    if math.isnan(lat) or math.isnan(lng):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0


def is_plausible_coordinate(lat: float, lng: float, region: RegionBounds = DEFAULT_REGION) -> bool:
    return is_valid_coordinate(lat, lng) and region.contains(lat, lng)


def _candidate(lat: str, lng: str, source: PlaceSource) -> Optional[Candidate]:
    try:
        lat_f, lng_f = float(lat), float(lng)
    except ValueError:
        return None
    if not is_valid_coordinate(lat_f, lng_f):
        return None
    return Candidate(lat=lat_f, lng=lng_f, source=source)


def _first(candidates: Iterable[Candidate]) -> Optional[Candidate]:
    return next(iter(candidates), None)


def _last(candidates: Iterable[Candidate]) -> Optional[Candidate]:
    found = None
    for cand in candidates:
        found = cand
    return found


# ---------------------------------------------------------------------------
# Candidate enumerators (every match, in document order)
# ---------------------------------------------------------------------------

def iter_app_init_state(markup: str) -> Iterator[Candidate]:
    # field order is [zoom, lng, lat]
    for match in APP_INIT_STATE_RE.finditer(markup):
        cand = _candidate(match.group(3), match.group(2), PlaceSource.APP_INIT_STATE)
        if cand:
            yield cand


def iter_protobuf_pairs(markup: str) -> Iterator[Candidate]:
    for match in PROTOBUF_PAIR_RE.finditer(markup):
        cand = _candidate(match.group(2), match.group(1), PlaceSource.PROTOBUF_PB)
        if cand:
            yield cand


def iter_protobuf_inverse_pairs(markup: str) -> Iterator[Candidate]:
    for match in PROTOBUF_INVERSE_PAIR_RE.finditer(markup):
        cand = _candidate(match.group(2), match.group(1), PlaceSource.PROTOBUF_PB_INVERSE)
        if cand:
            yield cand


def iter_protobuf_lat_lng_pairs(markup: str) -> Iterator[Candidate]:
    for match in PROTOBUF_LAT_LNG_RE.finditer(markup):
        cand = _candidate(match.group(1), match.group(2), PlaceSource.PROTOBUF_LAT_LNG)
        if cand:
            yield cand


def iter_static_map_centers(markup: str) -> Iterator[Candidate]:
    for match in STATIC_MAP_CENTER_RE.finditer(markup):
        cand = _candidate(match.group(1), match.group(2), PlaceSource.STATIC_MAP_CENTER)
        if cand:
            yield cand


def _preview_image_urls(markup: str) -> List[str]:
    urls = _meta_contents(_soup(markup), "og:image", "twitter:image")
    if not urls:
        # Some variants only carry the static map in an <img> or inline script.
        urls = [html.unescape(markup)]
    return urls


def iter_marker_pairs(markup: str) -> Iterator[Candidate]:
    for url in _preview_image_urls(markup):
        for param in MARKERS_PARAM_RE.finditer(url):
            decoded = unquote(param.group(1))
            for part in decoded.split("|"):
                pair = MARKER_PAIR_RE.match(part)
                if not pair:
                    continue
                cand = _candidate(pair.group(1), pair.group(2), PlaceSource.META_OG_IMAGE_MARKERS)
                if cand:
                    yield cand


def iter_array_pairs(markup: str, region: RegionBounds = DEFAULT_REGION) -> Iterator[Candidate]:
    for match in ARRAY_PAIR_RE.finditer(markup):
        a, b = float(match.group(1)), float(match.group(2))
        if is_plausible_coordinate(a, b, region):
            yield Candidate(lat=a, lng=b, source=PlaceSource.ARRAY_SCAN)
        elif is_plausible_coordinate(b, a, region):
            yield Candidate(lat=b, lng=a, source=PlaceSource.ARRAY_SCAN)


# ---------------------------------------------------------------------------
# Strategies (one answer each)
# ---------------------------------------------------------------------------

def from_app_init_state(markup: str) -> Optional[Candidate]:
    return _first(iter_app_init_state(markup))


def from_protobuf_pairs(markup: str) -> Optional[Candidate]:
    # Destination marker is appended after the origin one.
    return _last(iter_protobuf_pairs(markup)) or _last(iter_protobuf_inverse_pairs(markup))


def from_og_image_markers(markup: str) -> Optional[Candidate]:
    return _last(iter_marker_pairs(markup))


def from_array_scan(markup: str, region: RegionBounds = DEFAULT_REGION) -> Optional[Candidate]:
    return _first(iter_array_pairs(markup, region))


def default_strategies(region: RegionBounds = DEFAULT_REGION) -> List[Strategy]:
    return [
        from_app_init_state,
        from_protobuf_pairs,
        from_og_image_markers,
        lambda markup: from_array_scan(markup, region),
    ]


# ---------------------------------------------------------------------------
# Display name
# ---------------------------------------------------------------------------

def _soup(markup: str) -> BeautifulSoup:
    return BeautifulSoup(markup, "html.parser")


def _meta_contents(soup: BeautifulSoup, *keys: str) -> List[str]:
    """Content of every <meta> whose property (or name) is one of `keys`."""
    contents = []
    for tag in soup.find_all("meta"):
        key = tag.get("property") or tag.get("name") or tag.get("itemprop")
        content = tag.get("content")
        if key and key.lower() in keys and content:
            contents.append(content)
    return contents


def extract_display_name(markup: str, fallback_name: str) -> str:
    soup = _soup(markup)
    titles = _meta_contents(soup, "og:title")
    if titles:
        title = titles[0]
    elif soup.title and soup.title.string:
        title = soup.title.string
    else:
        return fallback_name
    cleaned = SITE_SUFFIX_RE.sub("", title).strip()
    if cleaned and cleaned.lower() != "google maps":
        return cleaned
    return fallback_name


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

def extract(
    markup: str,
    fallback_name: str,
    region: RegionBounds = DEFAULT_REGION,
    strategies: Optional[List[Strategy]] = None,
) -> Extraction:
    """Run the strategy cascade and return the first coordinate found."""
    name = extract_display_name(markup, fallback_name)
    for strategy in strategies or default_strategies(region):
        cand = strategy(markup)
        if cand is not None:
            return Extraction(lat=cand.lat, lng=cand.lng, name=name, source=cand.source)
    return Extraction(lat=None, lng=None, name=name, source=PlaceSource.NOT_FOUND)


def extract_all(markup: str, region: Optional[RegionBounds] = DEFAULT_REGION) -> List[Candidate]:
    """Every candidate from every strategy, de-duplicated at 6 decimals.

    Used by the audit tooling rather than the live service, so it also
    enumerates patterns the live cascade ignores (``!3d<lat>!4d<lng>`` place
    markers, static-map ``center=``). When ``region`` is set every candidate
    is gated by it, not only the array scan.
    """
    streams = [
        iter_app_init_state(markup),
        iter_protobuf_pairs(markup),
        iter_protobuf_lat_lng_pairs(markup),
        iter_protobuf_inverse_pairs(markup),
        iter_static_map_centers(markup),
        iter_marker_pairs(markup),
        iter_array_pairs(markup, region or WORLD),
    ]
    return dedupe_candidates(
        cand
        for stream in streams
        for cand in stream
        if region is None or region.contains(cand.lat, cand.lng)
    )


def dedupe_candidates(candidates: Iterable[Candidate]) -> List[Candidate]:
    """Collapse candidates sharing a 6-decimal "lat,lng" key, first one wins."""
    seen = set()
    unique: List[Candidate] = []
    for cand in candidates:
        if cand.key in seen:
            continue
        seen.add(cand.key)
        unique.append(Candidate(lat=round(cand.lat, 6), lng=round(cand.lng, 6), source=cand.source))
    return unique


def find_urls(markup: str) -> List[str]:
    """Unique, sorted URLs embedded in the markup (JS escapes decoded)."""
    urls = {
        match.replace("\\u003d", "=").replace("\\u0026", "&")
        for match in URL_RE.findall(markup)
    }
    return sorted(urls)
