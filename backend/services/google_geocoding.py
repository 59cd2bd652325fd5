"""
Official Google Geocoding API client, gated by a monthly quota.

Never raises: a missing key, an exhausted quota, an over-limit answer or a
transport error all come back as None.
"""
from __future__ import annotations

import logging
import re
from typing import Optional

import requests

from domain.errors import QuotaExceeded
from domain.models import PlaceSource, ResolvedPlace, ResolveRequest
from services.coordinate_extractor import is_valid_coordinate
from services.quota_tracker import QuotaTracker

GEOCODING_BASE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
GEOCODING_RESULT_URL = "api://google_geocoding"

logger = logging.getLogger(__name__)


def _redact_key(text: str) -> str:
    # requests puts the full query string, key included, in its error messages
    return re.sub(r"key=[^&\s]+", "key=<redacted>", text)


class GoogleGeocodingClient:
    def __init__(
        self,
        api_key: str,
        quota: QuotaTracker,
        language: str = "vi",
        base_url: str = GEOCODING_BASE_URL,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.quota = quota
        self.language = language
        self.base_url = base_url
        self.timeout = timeout
        self.session = session or requests.Session()

    def _check_quota(self) -> None:
        usage = self.quota.current_usage()
        if usage >= self.quota.monthly_limit:
            raise QuotaExceeded(
                f"Monthly geocoding limit reached ({usage}/{self.quota.monthly_limit})."
            )

    def resolve(self, req: ResolveRequest) -> Optional[ResolvedPlace]:
        if not self.api_key:
            logger.warning("GOOGLE_MAPS_API_KEY is not set. Skipping official geocoding.")
            return None

        try:
            self._check_quota()
        except QuotaExceeded as exc:
            logger.warning("%s Skipping.", exc)
            return None

        params = {
            "address": req.destination,
            "key": self.api_key,
            "language": self.language,
        }
        try:
            resp = self.session.get(self.base_url, params=params, timeout=self.timeout)
            data = resp.json()
        except Exception as exc:
            logger.error(
                "Error calling Google Geocoding API: %s: %s",
                type(exc).__name__,
                _redact_key(str(exc)),
            )
            return None

        status = data.get("status") if isinstance(data, dict) else None
        results = (data.get("results") or []) if isinstance(data, dict) else []

        if status == "OK" and results:
            self.quota.increment()
            top = results[0]
            try:
                location = top["geometry"]["location"]
                lat, lng = float(location["lat"]), float(location["lng"])
            except (KeyError, TypeError, ValueError) as exc:
                logger.error("Malformed geocoding result for %r: %s", req.destination, exc)
                return None
            if not is_valid_coordinate(lat, lng):
                logger.error("Geocoding returned out-of-range coordinate %s,%s", lat, lng)
                return None
            return ResolvedPlace(
                resolved_name=top.get("formatted_address") or req.destination,
                destination=req.destination,
                lat=lat,
                lng=lng,
                source=PlaceSource.GOOGLE_GEOCODING_API,
                url=GEOCODING_RESULT_URL,
            )

        if status == "OVER_QUERY_LIMIT":
            logger.error("Google API returned OVER_QUERY_LIMIT")
            self.quota.force_to_limit()
        elif status not in ("OK", "ZERO_RESULTS"):
            logger.warning("Google geocoding status %s for %r", status, req.destination)
        return None
