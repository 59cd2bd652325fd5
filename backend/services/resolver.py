"""
Place resolution orchestrator.

Providers are tried in a fixed order and never revisited:

    official geocoding -> maps scraping -> Nominatim -> unresolved

Each attempt is folded into a ProviderOutcome (found / not found / failed),
so a client that returns None, a page without coordinates and a raised error
all lead to the same fallback step.
"""
from __future__ import annotations

import logging
import threading
from typing import Callable, Optional, Sequence, Tuple

from domain.models import (
    OutcomeKind,
    PlaceSource,
    ProviderOutcome,
    Resolution,
    ResolvedPlace,
    ResolveRequest,
)
from services.coordinate_extractor import RegionBounds
from services.google_geocoding import GoogleGeocodingClient
from services.maps_scraper import GoogleMapsScraper, validate_request
from services.osm_client import NominatimSearchClient, build_headers
from services.quota_tracker import QuotaTracker
from services.request_queue import RequestQueue
from settings import Settings, settings as default_settings
from storage.file_storage import MarkupStorage

Provider = Callable[[ResolveRequest], Optional[ResolvedPlace]]

logger = logging.getLogger(__name__)


def attempt(provider: Provider, req: ResolveRequest) -> ProviderOutcome:
    try:
        place = provider(req)
    except Exception as exc:
        return ProviderOutcome.failed(exc)
    if place is None:
        return ProviderOutcome.not_found("no result")
    if place.source is PlaceSource.NOT_FOUND or not place.has_coordinates:
        return ProviderOutcome.not_found("no coordinates")
    return ProviderOutcome.found(place)


class PlaceResolver:
    def __init__(self, providers: Sequence[Tuple[str, Provider]]):
        self.providers = list(providers)

    @classmethod
    def from_clients(
        cls,
        official: GoogleGeocodingClient,
        scraper: GoogleMapsScraper,
        open_data: NominatimSearchClient,
    ) -> "PlaceResolver":
        return cls(
            [
                ("google_geocoding", official.resolve),
                ("google_maps_scrape", scraper.resolve),
                ("osm", open_data.resolve),
            ]
        )

    def resolve(self, req: ResolveRequest) -> Resolution:
        """
        Resolve a destination.

        Raises ValidationError for a malformed request. Every provider-level
        failure is logged and turned into a fallback; when all providers miss
        the returned Resolution has no place.
        """
        validate_request(req)
        logger.info("Starting resolution for: %r", req.destination)
        resolution = Resolution(destination=req.destination)

        for name, provider in self.providers:
            outcome = attempt(provider, req)
            resolution.attempts.append((name, outcome))

            if outcome.kind is OutcomeKind.FOUND:
                logger.info("Resolved %r via %s", req.destination, name)
                resolution.place = outcome.place
                return resolution
            if outcome.kind is OutcomeKind.FAILED:
                logger.warning("%s error for %r: %s", name, req.destination, outcome.reason)
            else:
                logger.info("%s found nothing for %r (%s)", name, req.destination, outcome.reason)

        logger.error("All providers failed to resolve: %r", req.destination)
        return resolution


def build_resolver(cfg: Settings, queue: Optional[RequestQueue] = None) -> PlaceResolver:
    """Wire the three provider clients from configuration."""
    quota = QuotaTracker(cfg.GEOCODING_USAGE_PATH, monthly_limit=cfg.GEOCODING_MONTHLY_LIMIT)
    official = GoogleGeocodingClient(
        api_key=cfg.GOOGLE_MAPS_API_KEY,
        quota=quota,
        language=cfg.GEOCODING_LANGUAGE,
    )
    scraper = GoogleMapsScraper(
        storage=MarkupStorage(cfg.SCRAPE_HTML_DIR) if cfg.SCRAPE_SAVE_HTML else None,
        timeout=cfg.SCRAPE_TIMEOUT_SECONDS,
        region=RegionBounds(*cfg.SCRAPE_REGION_BBOX),
    )
    open_data = NominatimSearchClient(
        queue=queue or RequestQueue(min_interval=cfg.NOMINATIM_MIN_INTERVAL, name="nominatim"),
        base_url=cfg.NOMINATIM_BASE_URL,
        headers=build_headers(
            cfg.NOMINATIM_USER_AGENT,
            referer=cfg.NOMINATIM_REFERER,
            accept_language=cfg.NOMINATIM_ACCEPT_LANGUAGE,
        ),
        viewbox_offset=cfg.NOMINATIM_VIEWBOX_OFFSET,
    )
    return PlaceResolver.from_clients(official, scraper, open_data)


_default_resolver: Optional[PlaceResolver] = None
_default_lock = threading.Lock()


def get_default_resolver() -> PlaceResolver:
    """Process-wide resolver; owns the single Nominatim request queue."""
    global _default_resolver
    with _default_lock:
        if _default_resolver is None:
            _default_resolver = build_resolver(default_settings)
        return _default_resolver
