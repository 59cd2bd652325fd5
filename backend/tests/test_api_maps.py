from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from api.main import app
from domain.errors import ValidationError
from domain.models import PlaceSource, Resolution, ResolvedPlace
from services.resolver import get_default_resolver

BODY = {"originLat": 21.0285, "originLng": 105.8342, "destination": "Lotte Center Hanoi"}


@pytest.fixture
def resolver():
    fake = MagicMock()
    app.dependency_overrides[get_default_resolver] = lambda: fake
    yield fake
    app.dependency_overrides.clear()


@pytest.fixture
def client():
    return TestClient(app)


def test_resolve_place_returns_resolved_payload(resolver, client):
    resolver.resolve.return_value = Resolution(
        destination="Lotte Center Hanoi",
        place=ResolvedPlace(
            resolved_name="Lotte Center Hà Nội",
            destination="Lotte Center Hanoi",
            lat=21.0317,
            lng=105.8125,
            source=PlaceSource.OSM,
            url="https://nominatim.openstreetmap.org/search?q=Lotte",
        ),
    )

    resp = client.post("/maps/resolve-place", json=BODY)
    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["data"]["resolvedName"] == "Lotte Center Hà Nội"
    assert data["data"]["source"] == "osm"
    assert data["data"]["lat"] == 21.0317

    req = resolver.resolve.call_args[0][0]
    assert (req.origin_lat, req.origin_lng, req.destination) == (21.0285, 105.8342, "Lotte Center Hanoi")


def test_unresolved_destination_is_success_with_null_data(resolver, client):
    resolver.resolve.return_value = Resolution(destination="Nowhere")
    resp = client.post("/maps/resolve-place", json=BODY)
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "data": None}


def test_validation_error_is_bad_request(resolver, client):
    resolver.resolve.side_effect = ValidationError("Invalid origin coordinate: 95,105")
    resp = client.post("/maps/resolve-place", json=BODY)
    assert resp.status_code == 400
    assert resp.json()["error"]["type"] == "bad_request"


def test_unexpected_error_is_internal(resolver, client):
    resolver.resolve.side_effect = KeyError("surprise")
    resp = client.post("/maps/resolve-place", json=BODY)
    assert resp.status_code == 500
    assert resp.json()["success"] is False
    assert resp.json()["error"]["type"] == "internal"


def test_missing_destination_is_rejected_by_body_validation(resolver, client):
    resp = client.post("/maps/resolve-place", json={"originLat": 21.0, "originLng": 105.0})
    assert resp.status_code == 422
    resolver.resolve.assert_not_called()


def test_unknown_body_field_is_rejected(resolver, client):
    resp = client.post("/maps/resolve-place", json={**BODY, "originlat": 21.0})
    assert resp.status_code == 422
    resolver.resolve.assert_not_called()


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}
