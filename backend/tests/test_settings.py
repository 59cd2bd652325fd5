import pytest

from settings import Settings


def test_defaults(monkeypatch):
    for name in ("GOOGLE_MAPS_API_KEY", "GEOCODING_MONTHLY_LIMIT", "SCRAPE_REGION_BBOX", "SCRAPE_SAVE_HTML"):
        monkeypatch.delenv(name, raising=False)
    cfg = Settings()
    assert cfg.GOOGLE_MAPS_API_KEY == ""
    assert cfg.GEOCODING_MONTHLY_LIMIT == 1000
    assert cfg.NOMINATIM_MIN_INTERVAL == 1.1
    assert cfg.SCRAPE_TIMEOUT_SECONDS == 10.0
    assert cfg.SCRAPE_SAVE_HTML is True
    assert cfg.SCRAPE_REGION_BBOX == (8.0, 24.0, 102.0, 110.0)


def test_overrides_from_environment(monkeypatch):
    monkeypatch.setenv("GEOCODING_MONTHLY_LIMIT", "250")
    monkeypatch.setenv("SCRAPE_SAVE_HTML", "off")
    monkeypatch.setenv("SCRAPE_REGION_BBOX", "35, 60, -10, 30")
    cfg = Settings()
    assert cfg.GEOCODING_MONTHLY_LIMIT == 250
    assert cfg.SCRAPE_SAVE_HTML is False
    assert cfg.SCRAPE_REGION_BBOX == (35.0, 60.0, -10.0, 30.0)


def test_malformed_region_bbox_is_rejected(monkeypatch):
    monkeypatch.setenv("SCRAPE_REGION_BBOX", "1,2,3")
    with pytest.raises(ValueError):
        Settings()
