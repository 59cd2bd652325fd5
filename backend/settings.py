import os
from pathlib import Path

# Basic settings helper to read environment configuration.

BACKEND_ROOT = Path(__file__).resolve().parent
DATA_DIR = BACKEND_ROOT / "data"


def _as_bool(val: str | None, default: bool = False) -> bool:
    if val is None:
        return default
    return val.lower() in ("1", "true", "yes", "on")


def _as_bbox(val: str | None, default: tuple[float, float, float, float]) -> tuple[float, float, float, float]:
    """Parse "min_lat,max_lat,min_lng,max_lng"."""
    if not val:
        return default
    parts = [p.strip() for p in val.split(",")]
    if len(parts) != 4:
        raise ValueError(f"SCRAPE_REGION_BBOX needs 4 comma separated numbers, got {val!r}")
    min_lat, max_lat, min_lng, max_lng = (float(p) for p in parts)
    return (min_lat, max_lat, min_lng, max_lng)


class Settings:
    def __init__(self) -> None:
        # Official geocoding (quota gated)
        self.GOOGLE_MAPS_API_KEY: str = os.getenv("GOOGLE_MAPS_API_KEY", "")
        self.GEOCODING_MONTHLY_LIMIT: int = int(os.getenv("GEOCODING_MONTHLY_LIMIT", "1000"))
        self.GEOCODING_USAGE_PATH: str = os.getenv(
            "GEOCODING_USAGE_PATH", str(DATA_DIR / "geocoding_usage.json")
        )
        self.GEOCODING_LANGUAGE: str = os.getenv("GEOCODING_LANGUAGE", "vi")

        # Nominatim
        self.NOMINATIM_BASE_URL: str = os.getenv(
            "NOMINATIM_BASE_URL", "https://nominatim.openstreetmap.org/search"
        )
        self.NOMINATIM_USER_AGENT: str | None = os.getenv("NOMINATIM_USER_AGENT")
        self.NOMINATIM_REFERER: str | None = os.getenv("NOMINATIM_REFERER")
        self.NOMINATIM_MIN_INTERVAL: float = float(os.getenv("NOMINATIM_MIN_INTERVAL", "1.1"))
        self.NOMINATIM_VIEWBOX_OFFSET: float = float(os.getenv("NOMINATIM_VIEWBOX_OFFSET", "0.2"))
        self.NOMINATIM_ACCEPT_LANGUAGE: str = os.getenv("NOMINATIM_ACCEPT_LANGUAGE", "vi-VN,vi;q=0.9")

        # Maps directions scraping
        self.SCRAPE_TIMEOUT_SECONDS: float = float(os.getenv("SCRAPE_TIMEOUT_SECONDS", "10"))
        self.SCRAPE_HTML_DIR: str = os.getenv("SCRAPE_HTML_DIR", str(DATA_DIR / "html"))
        self.SCRAPE_SAVE_HTML: bool = _as_bool(os.getenv("SCRAPE_SAVE_HTML"), True)
        self.SCRAPE_REGION_BBOX = _as_bbox(os.getenv("SCRAPE_REGION_BBOX"), (8.0, 24.0, 102.0, 110.0))

        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
        self.PORT: int = int(os.getenv("PORT", "9000"))


settings = Settings()
