"""
Core domain models for the place resolver.
These are framework-agnostic and shared by every provider client.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class PlaceSource(str, Enum):
    """Which provider or extraction strategy produced a coordinate."""
    GOOGLE_GEOCODING_API = "google_geocoding_api"
    APP_INIT_STATE = "app_init_state"
    PROTOBUF_PB = "protobuf_pb"
    PROTOBUF_PB_INVERSE = "protobuf_pb_inverse"
    PROTOBUF_LAT_LNG = "protobuf_lat_lng"
    STATIC_MAP_CENTER = "static_map_center"
    META_OG_IMAGE_MARKERS = "meta_og_image_markers"
    ARRAY_SCAN = "array_scan"
    OSM = "osm"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class ResolveRequest:
    """A destination to resolve, biased towards the caller's origin."""
    origin_lat: float
    origin_lng: float
    destination: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ResolveRequest":
        return cls(
            origin_lat=float(data["originLat"]),
            origin_lng=float(data["originLng"]),
            destination=str(data["destination"]),
        )


@dataclass(frozen=True)
class ResolvedPlace:
    resolved_name: str
    destination: str  # echo of the requested destination
    lat: Optional[float]
    lng: Optional[float]
    source: PlaceSource
    url: str

    @property
    def has_coordinates(self) -> bool:
        return self.lat is not None and self.lng is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "resolvedName": self.resolved_name,
            "destination": self.destination,
            "lat": self.lat,
            "lng": self.lng,
            "source": self.source.value,
            "url": self.url,
        }


class OutcomeKind(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    FAILED = "failed"


@dataclass(frozen=True)
class ProviderOutcome:
    """
    Result of a single provider attempt.

    Exactly one of the three cases applies:
    - FOUND: `place` carries both coordinates
    - NOT_FOUND: the provider answered but had nothing usable (`reason`)
    - FAILED: the provider raised (`error`)
    """
    kind: OutcomeKind
    place: Optional[ResolvedPlace] = None
    reason: Optional[str] = None
    error: Optional[BaseException] = None

    @classmethod
    def found(cls, place: ResolvedPlace) -> "ProviderOutcome":
        return cls(kind=OutcomeKind.FOUND, place=place)

    @classmethod
    def not_found(cls, reason: str) -> "ProviderOutcome":
        return cls(kind=OutcomeKind.NOT_FOUND, reason=reason)

    @classmethod
    def failed(cls, error: BaseException) -> "ProviderOutcome":
        return cls(kind=OutcomeKind.FAILED, error=error, reason=str(error))


@dataclass
class Resolution:
    """Final answer of the resolver plus every attempt made on the way."""
    destination: str
    place: Optional[ResolvedPlace] = None
    attempts: List[Tuple[str, ProviderOutcome]] = field(default_factory=list)

    @property
    def resolved(self) -> bool:
        return self.place is not None
