import sys
from pathlib import Path

import pytest

# Ensure the backend package root is on sys.path for direct pytest runs
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

FIXTURES_DIR = Path(__file__).resolve().parent / "fixtures"


class DummyResponse:
    def __init__(self, json_data=None, status_code=200, text=""):
        self._json = json_data
        self.status_code = status_code
        self.text = text

    @property
    def ok(self):
        return 200 <= self.status_code < 300

    def json(self):
        if isinstance(self._json, Exception):
            raise self._json
        return self._json


@pytest.fixture
def hanoi_request():
    from domain.models import ResolveRequest

    return ResolveRequest(origin_lat=21.0285, origin_lng=105.8342, destination="Lotte Center Hanoi")


@pytest.fixture
def directions_markup():
    return (FIXTURES_DIR / "maps_directions.html").read_text(encoding="utf-8")
