"""
Maps API routes.

Handles place resolution requests.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from domain.errors import InternalResolverError, ResolverError
from domain.models import ResolveRequest
from services.resolver import PlaceResolver, get_default_resolver

router = APIRouter()
logger = logging.getLogger(__name__)


class ResolvePlaceBody(BaseModel):
    model_config = ConfigDict(extra="forbid")

    originLat: float
    originLng: float
    destination: str = Field(..., min_length=1)


class ResolvedPlaceResponse(BaseModel):
    resolvedName: str
    destination: str
    lat: Optional[float] = None
    lng: Optional[float] = None
    source: str
    url: str


class ResolvePlaceResponse(BaseModel):
    success: bool
    data: Optional[ResolvedPlaceResponse] = None


@router.post("/resolve-place", response_model=ResolvePlaceResponse)
def resolve_place(
    body: ResolvePlaceBody,
    resolver: PlaceResolver = Depends(get_default_resolver),
):
    """
    Resolve a destination name to coordinates near an origin.

    An unresolvable destination is not an error: `data` is null.
    """
    logger.info("Received resolve-place request for: %s", body.destination)
    req = ResolveRequest.from_dict(body.model_dump())
    try:
        resolution = resolver.resolve(req)
    except ResolverError:
        raise
    except Exception as exc:
        logger.exception("Failed to resolve place %r", body.destination)
        raise InternalResolverError(f"Failed to resolve place: {exc}") from exc

    data = resolution.place.to_dict() if resolution.place else None
    return {"success": True, "data": data}
