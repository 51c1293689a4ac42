import os

# Keep Settings() independent of the developer's environment
os.environ.setdefault("CACHE_BACKEND", "memory")

from collections.abc import Callable

import pytest

from geopricing.cache import CacheLayer, InMemoryCacheStore, TTLPolicy
from geopricing.geo.coordinates import Coordinate
from geopricing.geo.osrm_client import OSRMClient
from geopricing.geo.route_resolver import RouteResolver
from geopricing.geocoding.gateway import GeocodingGateway
from geopricing.geocoding.pelias_client import PeliasClient

OSRM_URL = "http://osrm.test"
PELIAS_URL = "http://pelias.test"

TUNIS = Coordinate(latitude=36.8065, longitude=10.1815)
SOUSSE = Coordinate(latitude=35.8256, longitude=10.6369)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_store(clock: FakeClock) -> InMemoryCacheStore:
    return InMemoryCacheStore(clock=clock)


@pytest.fixture
def cache_layer(memory_store: InMemoryCacheStore) -> CacheLayer:
    return CacheLayer(memory_store)


@pytest.fixture
def osrm_client() -> OSRMClient:
    return OSRMClient(base_url=OSRM_URL)


@pytest.fixture
def pelias_client() -> PeliasClient:
    return PeliasClient(base_url=PELIAS_URL)


@pytest.fixture
def route_resolver(osrm_client: OSRMClient, cache_layer: CacheLayer) -> RouteResolver:
    return RouteResolver(osrm_client, cache_layer, TTLPolicy())


@pytest.fixture
def geocoding_gateway(pelias_client: PeliasClient, cache_layer: CacheLayer) -> GeocodingGateway:
    return GeocodingGateway(pelias_client, cache_layer, TTLPolicy())


@pytest.fixture
def osrm_route_payload() -> Callable[..., dict]:
    def build(distance: float = 140000.0, duration: float = 7200.0, routes: int = 1) -> dict:
        route = {
            "distance": distance,
            "duration": duration,
            "geometry": "_izlhA~rlgdF_{geC~ywl@_kwzCn`{nI",
            "legs": [{"distance": distance, "duration": duration}],
        }
        return {"code": "Ok", "routes": [dict(route) for _ in range(routes)]}

    return build
