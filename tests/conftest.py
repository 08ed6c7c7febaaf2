import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]

if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import h3
import pytest
from beanie import init_beanie
from mongomock_motor import AsyncMongoMockClient
from territory_fakes import FakeClock

from config import H3_RESOLUTION
from db.models import ALL_DOCUMENT_MODELS

# Old Town, Krakow
KRAKOW_LAT = 50.0614
KRAKOW_LNG = 19.9366


@pytest.fixture(autouse=True)
def _default_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MONGODB_URI", "mongodb://localhost:27017")
    monkeypatch.setenv("MONGODB_DATABASE", "stride_wars_test")


@pytest.fixture
async def beanie_db():
    client = AsyncMongoMockClient()
    database = client["test_db"]
    await init_beanie(database=database, document_models=ALL_DOCUMENT_MODELS)
    return database


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def krakow_cell() -> str:
    return h3.latlng_to_cell(KRAKOW_LAT, KRAKOW_LNG, H3_RESOLUTION)


@pytest.fixture
def krakow_cells(krakow_cell: str) -> list[str]:
    """The Old Town cell followed by its six neighbours, in stable order."""
    neighbours = sorted(set(h3.grid_disk(krakow_cell, 1)) - {krakow_cell})
    return [krakow_cell, *neighbours]


@pytest.fixture
def far_cell() -> str:
    # Lower Manhattan
    return h3.latlng_to_cell(40.7075, -74.0113, H3_RESOLUTION)
