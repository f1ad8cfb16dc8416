from pathlib import Path
import pytest

from vehiclesim.geo.geodesy import GeoPoint
from vehiclesim.route.model import Route

DATA = Path(__file__).parent / "data"


@pytest.fixture
def sample_route_json_path() -> Path:
    return DATA / "sample_route.json"


@pytest.fixture
def sample_gpx_path() -> Path:
    return DATA / "sample.gpx"


@pytest.fixture
def route_only_gpx_path() -> Path:
    return DATA / "route_only.gpx"


@pytest.fixture
def straight_route() -> Route:
    """Three collinear points along the equator, ~111 m apart."""
    return Route([GeoPoint(0.0, 0.0), GeoPoint(0.0, 0.001), GeoPoint(0.0, 0.002)])


@pytest.fixture
def l_route() -> Route:
    """North ~111 m, then east ~111 m."""
    return Route([GeoPoint(0.0, 0.0), GeoPoint(0.001, 0.0), GeoPoint(0.001, 0.001)])


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for var in (
        "VEHICLESIM_BASE_SPEED_MPS",
        "VEHICLESIM_SPEED_MULTIPLIER",
        "VEHICLESIM_TICK_INTERVAL_S",
        "VEHICLESIM_DEBUG",
        "VEHICLESIM_LOG_PREFIX",
    ):
        monkeypatch.delenv(var, raising=False)
