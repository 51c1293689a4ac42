from unittest.mock import AsyncMock

import httpx
import pytest
import respx
from httpx import Response

from geopricing.cache import CacheLayer, InMemoryCacheStore, TTLPolicy
from geopricing.core.exceptions import (
    NoRouteFoundError,
    UpstreamUnavailableError,
    ValidationError,
)
from geopricing.geo.coordinates import Coordinate
from geopricing.geo.models import RouteOptions, RouteProfile, RouteResult, RouteSource
from geopricing.geo.route_resolver import RouteResolver

TUNIS = Coordinate(latitude=36.8065, longitude=10.1815)
SOUSSE = Coordinate(latitude=35.8256, longitude=10.6369)
SFAX = Coordinate(latitude=34.7406, longitude=10.7603)

ROUTE_PATH = r".*/route/v1/.*"


async def test_provider_route_is_returned(route_resolver: RouteResolver, osrm_route_payload):
    async with respx.mock:
        respx.route(path__regex=ROUTE_PATH).mock(
            return_value=Response(200, json=osrm_route_payload())
        )

        route = await route_resolver.resolve([TUNIS, SOUSSE])

        assert route.source == RouteSource.PROVIDER
        assert route.distance_meters == 140000.0


async def test_second_request_is_served_from_cache(
    route_resolver: RouteResolver, osrm_route_payload
):
    async with respx.mock:
        osrm = respx.route(path__regex=ROUTE_PATH).mock(
            return_value=Response(200, json=osrm_route_payload())
        )

        first = await route_resolver.resolve_cached([TUNIS, SOUSSE])
        second = await route_resolver.resolve_cached([TUNIS, SOUSSE])

        assert first.cached is False
        assert second.cached is True
        assert second.value == first.value
        assert osrm.call_count == 1


async def test_nearby_coordinates_share_cache_entry(
    route_resolver: RouteResolver, osrm_route_payload
):
    async with respx.mock:
        osrm = respx.route(path__regex=ROUTE_PATH).mock(
            return_value=Response(200, json=osrm_route_payload())
        )
        jittered = Coordinate(latitude=36.80651, longitude=10.18149)

        await route_resolver.resolve([TUNIS, SOUSSE])
        result = await route_resolver.resolve_cached([jittered, SOUSSE])

        assert result.cached is True
        assert osrm.call_count == 1


async def test_profiles_are_cached_separately(route_resolver: RouteResolver, osrm_route_payload):
    async with respx.mock:
        osrm = respx.route(path__regex=ROUTE_PATH).mock(
            return_value=Response(200, json=osrm_route_payload())
        )

        await route_resolver.resolve([TUNIS, SOUSSE], RouteOptions(profile=RouteProfile.CAR))
        await route_resolver.resolve([TUNIS, SOUSSE], RouteOptions(profile=RouteProfile.TRUCK))

        assert osrm.call_count == 2


@pytest.mark.parametrize(
    "mock_kwargs",
    [
        {"side_effect": httpx.ReadTimeout("timed out")},
        {"side_effect": httpx.ConnectError("refused")},
        {"return_value": Response(500, text="boom")},
        {"return_value": Response(200, json={"code": "NoRoute"})},
        {"return_value": Response(200, json={"code": "Ok", "routes": []})},
        {"return_value": Response(200, text="not json")},
        {"return_value": Response(200, json={"code": "Ok", "routes": ["x"]})},
        {"return_value": Response(200, json={"code": "Ok", "routes": [None]})},
        {"return_value": Response(200, json={"code": "Ok", "routes": [[1, 2]]})},
    ],
    ids=[
        "timeout",
        "network",
        "http-500",
        "no-route",
        "empty-routes",
        "bad-payload",
        "string-route",
        "null-route",
        "list-route",
    ],
)
async def test_two_point_failure_falls_back(route_resolver: RouteResolver, mock_kwargs):
    async with respx.mock:
        respx.route(path__regex=ROUTE_PATH).mock(**mock_kwargs)

        result = await route_resolver.resolve_cached([TUNIS, SOUSSE])

        assert result.value.source == RouteSource.FALLBACK
        assert result.value.geometry is None
        assert result.value.distance_meters > 0
        assert result.cached is False


async def test_fallback_is_not_cached(
    route_resolver: RouteResolver, memory_store: InMemoryCacheStore, osrm_route_payload
):
    async with respx.mock:
        osrm = respx.route(path__regex=ROUTE_PATH)
        osrm.side_effect = [
            httpx.ConnectError("refused"),
            Response(200, json=osrm_route_payload()),
        ]

        first = await route_resolver.resolve([TUNIS, SOUSSE])
        assert first.source == RouteSource.FALLBACK
        assert len(memory_store) == 0

        second = await route_resolver.resolve_cached([TUNIS, SOUSSE])
        assert second.value.source == RouteSource.PROVIDER
        assert second.cached is False
        assert osrm.call_count == 2


async def test_multi_waypoint_failure_propagates(route_resolver: RouteResolver):
    async with respx.mock:
        respx.route(path__regex=ROUTE_PATH).mock(
            return_value=Response(200, json={"code": "NoRoute"})
        )

        with pytest.raises(NoRouteFoundError):
            await route_resolver.resolve([TUNIS, SOUSSE, SFAX])


async def test_multi_waypoint_timeout_propagates(route_resolver: RouteResolver):
    async with respx.mock:
        respx.route(path__regex=ROUTE_PATH).mock(side_effect=httpx.ReadTimeout("slow"))

        with pytest.raises(UpstreamUnavailableError):
            await route_resolver.resolve([TUNIS, SOUSSE, SFAX])


async def test_multi_waypoint_bypasses_cache(
    route_resolver: RouteResolver, memory_store: InMemoryCacheStore, osrm_route_payload
):
    async with respx.mock:
        osrm = respx.route(path__regex=ROUTE_PATH).mock(
            return_value=Response(200, json=osrm_route_payload())
        )

        await route_resolver.resolve([TUNIS, SOUSSE, SFAX])
        result = await route_resolver.resolve_cached([TUNIS, SOUSSE, SFAX])

        assert result.cached is False
        assert osrm.call_count == 2
        assert len(memory_store) == 0


async def test_alternatives_bypass_cache_and_propagate_errors(route_resolver: RouteResolver):
    async with respx.mock:
        respx.route(path__regex=ROUTE_PATH).mock(return_value=Response(503))

        with pytest.raises(UpstreamUnavailableError):
            await route_resolver.resolve([TUNIS, SOUSSE], RouteOptions(alternatives=True))


async def test_single_waypoint_rejected_without_network(route_resolver: RouteResolver):
    async with respx.mock:
        osrm = respx.route(path__regex=ROUTE_PATH)

        with pytest.raises(ValidationError):
            await route_resolver.resolve([TUNIS])

        assert not osrm.called


async def test_invalid_coordinate_rejected_without_network(route_resolver: RouteResolver):
    bad = Coordinate.model_construct(latitude=95.0, longitude=0.0)
    async with respx.mock:
        osrm = respx.route(path__regex=ROUTE_PATH)

        with pytest.raises(ValidationError):
            await route_resolver.resolve([bad, SOUSSE])

        assert not osrm.called


async def test_cache_store_outage_still_resolves():
    store = AsyncMock()
    store.get.side_effect = ConnectionError("redis down")
    store.set.side_effect = ConnectionError("redis down")
    osrm_client = AsyncMock()
    osrm_client.get_route.return_value = RouteResult(
        distance_meters=1000.0, duration_seconds=60.0, source=RouteSource.PROVIDER
    )
    resolver = RouteResolver(osrm_client, CacheLayer(store), TTLPolicy())

    result = await resolver.resolve_cached([TUNIS, SOUSSE])

    assert result.value.source == RouteSource.PROVIDER
    assert result.cached is False


async def test_routing_ttl_is_used():
    store = AsyncMock()
    store.get.return_value = None
    osrm_client = AsyncMock()
    osrm_client.get_route.return_value = RouteResult(
        distance_meters=1000.0, duration_seconds=60.0, source=RouteSource.PROVIDER
    )
    resolver = RouteResolver(
        osrm_client, CacheLayer(store), TTLPolicy(routing_seconds=600, geocoding_seconds=3600)
    )

    await resolver.resolve([TUNIS, SOUSSE])

    key, _payload, ttl = store.set.call_args.args
    assert key.startswith("routing:route:car:")
    assert ttl == 600


async def test_matrix_delegates_to_table(route_resolver: RouteResolver):
    async with respx.mock:
        table = respx.route(path__regex=r".*/table/v1/truck/.*").mock(
            return_value=Response(
                200, json={"code": "Ok", "distances": [[1.0]], "durations": [[2.0]]}
            )
        )

        matrix = await route_resolver.matrix([TUNIS], [SOUSSE], RouteProfile.TRUCK)

        assert table.called
        assert matrix.durations == [[2.0]]


async def test_matrix_rejects_invalid_coordinates(route_resolver: RouteResolver):
    bad = Coordinate.model_construct(latitude=0.0, longitude=200.0)
    with pytest.raises(ValidationError):
        await route_resolver.matrix([TUNIS], [bad])
