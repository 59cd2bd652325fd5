import json
from datetime import datetime, timezone
from unittest.mock import MagicMock

import requests

from conftest import DummyResponse
from domain.models import PlaceSource
from services.google_geocoding import GoogleGeocodingClient
from services.quota_tracker import QuotaTracker

OK_PAYLOAD = {
    "status": "OK",
    "results": [
        {
            "formatted_address": "54 Liễu Giai, Cống Vị, Ba Đình, Hà Nội, Việt Nam",
            "geometry": {"location": {"lat": 21.0317, "lng": 105.8125}},
        }
    ],
}


def _quota(tmp_path, usage=None, limit=1000):
    path = tmp_path / "usage.json"
    if usage is not None:
        path.write_text(json.dumps({"2026-02": usage}), encoding="utf-8")
    return QuotaTracker(
        path,
        monthly_limit=limit,
        now=lambda: datetime(2026, 2, 1, tzinfo=timezone.utc),
    )


def _client(quota, payload=OK_PAYLOAD, api_key="test-key"):
    session = MagicMock()
    session.get.return_value = DummyResponse(payload)
    return GoogleGeocodingClient(api_key=api_key, quota=quota, session=session), session


def test_missing_key_skips_without_network_or_quota_read(hanoi_request):
    quota = MagicMock(spec=QuotaTracker)
    client, session = _client(quota, api_key="")

    assert client.resolve(hanoi_request) is None
    session.get.assert_not_called()
    quota.current_usage.assert_not_called()


def test_success_returns_top_result_and_counts_usage(tmp_path, hanoi_request):
    quota = _quota(tmp_path)
    client, session = _client(quota)

    place = client.resolve(hanoi_request)
    assert place.source is PlaceSource.GOOGLE_GEOCODING_API
    assert (place.lat, place.lng) == (21.0317, 105.8125)
    assert place.resolved_name.startswith("54 Liễu Giai")
    assert place.url == "api://google_geocoding"
    assert quota.current_usage() == 1

    _, kwargs = session.get.call_args
    assert kwargs["params"]["address"] == "Lotte Center Hanoi"
    assert kwargs["params"]["key"] == "test-key"
    assert kwargs["params"]["language"] == "vi"


def test_last_call_of_month_then_gate_closes(tmp_path, hanoi_request):
    quota = _quota(tmp_path, usage=999)
    client, session = _client(quota)

    assert client.resolve(hanoi_request) is not None
    assert quota.current_usage() == 1000

    assert client.resolve(hanoi_request) is None
    assert session.get.call_count == 1


def test_over_query_limit_forces_quota_to_ceiling(tmp_path, hanoi_request):
    quota = _quota(tmp_path, usage=10)
    client, _ = _client(quota, payload={"status": "OVER_QUERY_LIMIT", "results": []})

    assert client.resolve(hanoi_request) is None
    assert quota.current_usage() == 1000


def test_zero_results_does_not_count(tmp_path, hanoi_request):
    quota = _quota(tmp_path)
    client, _ = _client(quota, payload={"status": "ZERO_RESULTS", "results": []})

    assert client.resolve(hanoi_request) is None
    assert quota.current_usage() == 0


def test_transport_error_returns_none(tmp_path, hanoi_request):
    quota = _quota(tmp_path)
    client, session = _client(quota)
    session.get.side_effect = requests.ConnectionError("dns failure")

    assert client.resolve(hanoi_request) is None
    assert quota.current_usage() == 0


def test_non_json_body_returns_none(tmp_path, hanoi_request):
    quota = _quota(tmp_path)
    client, _ = _client(quota, payload=ValueError("not json"))

    assert client.resolve(hanoi_request) is None


def test_transport_error_log_does_not_leak_api_key(tmp_path, hanoi_request, caplog):
    quota = _quota(tmp_path)
    client, session = _client(quota, api_key="SECRET-KEY-123")
    session.get.side_effect = requests.ConnectionError(
        "Max retries exceeded with url: /maps/api/geocode/json"
        "?address=x&key=SECRET-KEY-123&language=vi"
    )

    with caplog.at_level("ERROR", logger="services.google_geocoding"):
        assert client.resolve(hanoi_request) is None

    assert "SECRET-KEY-123" not in caplog.text
    assert "key=<redacted>" in caplog.text
    assert "ConnectionError" in caplog.text


def test_out_of_range_coordinate_is_rejected(tmp_path, hanoi_request):
    payload = {
        "status": "OK",
        "results": [
            {
                "formatted_address": "Nowhere",
                "geometry": {"location": {"lat": 95.0, "lng": 105.8}},
            }
        ],
    }
    quota = _quota(tmp_path)
    client, _ = _client(quota, payload=payload)

    assert client.resolve(hanoi_request) is None
