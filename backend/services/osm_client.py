"""Forward geocoding through OpenStreetMap Nominatim.

Every request goes through a shared `RequestQueue` so the whole process stays
within the Nominatim usage policy (one request per second, we use 1.1s).
Results are biased towards the origin with a viewbox of +-0.2 degrees.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import requests

from domain.models import PlaceSource, ResolvedPlace, ResolveRequest
from services.coordinate_extractor import is_valid_coordinate
from services.request_queue import RequestQueue

NOMINATIM_SEARCH_URL = "https://nominatim.openstreetmap.org/search"
FALLBACK_UA = "place-resolver/0.1 (contact: example@example.com)"
DEFAULT_VIEWBOX_OFFSET = 0.2

logger = logging.getLogger(__name__)


def _redact_email(ua: str) -> str:
    if "@" not in ua:
        return ua
    return re.sub(r"\S+@\S+", "<redacted>", ua)


def build_viewbox(lat: float, lng: float, offset: float = DEFAULT_VIEWBOX_OFFSET) -> str:
    """Nominatim viewbox "left,top,right,bottom" (lng,lat,lng,lat) around a point."""
    return f"{lng - offset},{lat + offset},{lng + offset},{lat - offset}"


def build_headers(
    user_agent: Optional[str],
    referer: Optional[str] = None,
    accept_language: str = "vi-VN,vi;q=0.9",
) -> Dict[str, str]:
    if not user_agent:
        logger.warning(
            "NOMINATIM_USER_AGENT not set in environment; using fallback UA. "
            "This may violate Nominatim usage policy."
        )
    headers = {
        "User-Agent": user_agent or FALLBACK_UA,
        "Accept": "application/json",
        "Accept-Language": accept_language,
    }
    if referer:
        headers["Referer"] = referer
    return headers


class NominatimSearchClient:
    def __init__(
        self,
        queue: RequestQueue,
        base_url: str = NOMINATIM_SEARCH_URL,
        headers: Optional[Dict[str, str]] = None,
        viewbox_offset: float = DEFAULT_VIEWBOX_OFFSET,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.queue = queue
        self.base_url = base_url
        self.headers = headers or build_headers(None)
        self.viewbox_offset = viewbox_offset
        self.timeout = timeout
        self.session = session or requests.Session()
        logger.debug("Nominatim User-Agent: %s", _redact_email(self.headers.get("User-Agent", "")))

    def search_params(self, req: ResolveRequest) -> Dict[str, Any]:
        return {
            "q": req.destination,
            "format": "json",
            "viewbox": build_viewbox(req.origin_lat, req.origin_lng, self.viewbox_offset),
        }

    def resolve(self, req: ResolveRequest) -> Optional[ResolvedPlace]:
        """Search for the destination; None on any failure or empty answer."""
        return self.queue.schedule(lambda: self._search(req))

    def _search(self, req: ResolveRequest) -> Optional[ResolvedPlace]:
        params = self.search_params(req)
        url = f"{self.base_url}?{urlencode(params)}"
        logger.info("Resolving via OSM: %r", req.destination)

        try:
            resp = self.session.get(
                self.base_url, params=params, headers=self.headers, timeout=self.timeout
            )
        except Exception as exc:
            logger.error("Error calling OSM for %r: %s", req.destination, exc)
            return None

        if not resp.ok:
            logger.error("OSM returned status %s", resp.status_code)
            return None

        try:
            data = resp.json()
        except Exception as exc:
            logger.error("OSM JSON error for %r: %s", req.destination, exc)
            return None

        if not isinstance(data, list) or not data:
            return None

        top = data[0]
        try:
            lat, lng = float(top["lat"]), float(top["lon"])
        except (KeyError, TypeError, ValueError) as exc:
            logger.error("Malformed OSM result for %r: %s", req.destination, exc)
            return None
        if not is_valid_coordinate(lat, lng):
            return None

        return ResolvedPlace(
            resolved_name=top.get("display_name") or req.destination,
            destination=req.destination,
            lat=lat,
            lng=lng,
            source=PlaceSource.OSM,
            url=url,
        )
