"""
Best-effort Google Maps directions scraper.

Fetches the directions page from the origin to the destination and hands the
markup to the coordinate extractor. Unlike the other provider clients this
one raises structured errors (timeout, bad gateway, ...) so that callers can
tell a structural failure from a page that simply had no coordinates; the
resolver treats both as a miss.
"""
from __future__ import annotations

import logging
from typing import Dict, Optional
from urllib.parse import quote

import requests

from domain.errors import (
    InternalResolverError,
    ResolverError,
    UpstreamBadResponse,
    UpstreamTimeout,
    UpstreamUnavailable,
    ValidationError,
)
from domain.models import ResolvedPlace, ResolveRequest
from services.coordinate_extractor import DEFAULT_REGION, RegionBounds, extract, is_valid_coordinate
from storage.file_storage import MarkupStorage

MAPS_DIRECTIONS_BASE_URL = "https://www.google.com/maps/dir"

BROWSER_HEADERS: Dict[str, str] = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
    "Accept-Language": "vi-VN,vi;q=0.9,en-US;q=0.8,en;q=0.7",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}

logger = logging.getLogger(__name__)


def build_directions_url(req: ResolveRequest, base_url: str = MAPS_DIRECTIONS_BASE_URL) -> str:
    origin = quote(f"{req.origin_lat},{req.origin_lng}", safe="")
    return f"{base_url}/{origin}/{quote(req.destination, safe='')}"


def validate_request(req: ResolveRequest) -> None:
    if not is_valid_coordinate(req.origin_lat, req.origin_lng):
        raise ValidationError(
            f"Invalid origin coordinate: {req.origin_lat},{req.origin_lng}"
        )
    if not req.destination or not req.destination.strip():
        raise ValidationError("Destination must not be empty")


class GoogleMapsScraper:
    def __init__(
        self,
        storage: Optional[MarkupStorage] = None,
        timeout: float = 10.0,
        region: RegionBounds = DEFAULT_REGION,
        base_url: str = MAPS_DIRECTIONS_BASE_URL,
        session: Optional[requests.Session] = None,
    ):
        self.storage = storage
        self.timeout = timeout
        self.region = region
        self.base_url = base_url
        self.session = session or requests.Session()

    def _save_markup(self, destination: str, markup: str) -> None:
        if self.storage is None:
            return
        try:
            path = self.storage.save(destination, markup)
            logger.debug("Saved maps markup for %r to %s", destination, path)
        except OSError as exc:
            logger.warning("Could not save maps markup for %r: %s", destination, exc)

    def _fetch(self, url: str) -> str:
        try:
            resp = self.session.get(url, headers=BROWSER_HEADERS, timeout=self.timeout)
        except requests.Timeout as exc:
            raise UpstreamTimeout(f"Google Maps request timed out after {self.timeout}s") from exc
        except requests.ConnectionError as exc:
            raise UpstreamUnavailable(f"Could not reach Google Maps: {exc}") from exc

        if not resp.ok:
            raise UpstreamBadResponse(f"Google Maps returned status {resp.status_code}")
        return resp.text

    def resolve(self, req: ResolveRequest) -> ResolvedPlace:
        """
        Scrape the directions page for `req`.

        Returns a place whose source is NOT_FOUND (and coordinates None) when
        the page was fetched but no strategy found a coordinate.

        Raises:
            ValidationError: origin out of range or empty destination
            UpstreamTimeout / UpstreamUnavailable / UpstreamBadResponse
            InternalResolverError: anything unexpected
        """
        validate_request(req)
        url = build_directions_url(req, self.base_url)
        logger.info("Scraping Google Maps directions for %r", req.destination)

        try:
            markup = self._fetch(url)
            self._save_markup(req.destination, markup)
            result = extract(markup, req.destination, region=self.region)
        except ResolverError:
            raise
        except Exception as exc:
            raise InternalResolverError(f"Unexpected scraping failure: {exc}") from exc

        if not result.found:
            logger.info("No coordinates found in maps markup for %r", req.destination)
        else:
            logger.info(
                "Extracted %s,%s for %r via %s",
                result.lat,
                result.lng,
                req.destination,
                result.source.value,
            )
        return ResolvedPlace(
            resolved_name=result.name,
            destination=req.destination,
            lat=result.lat,
            lng=result.lng,
            source=result.source,
            url=url,
        )
