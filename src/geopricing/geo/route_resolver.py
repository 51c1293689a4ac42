"""Route resolution with caching and a straight-line fallback.

A two-point route always resolves: when the provider cannot answer, the
Haversine estimate is returned tagged ``source="fallback"``. Fallback results
are not cached, so the next request gives the provider another chance.
Requests with more than two waypoints or with alternatives go straight to
the provider and surface its failures.
"""

import logging
from collections.abc import Sequence

from pydantic import TypeAdapter

from geopricing.cache.keys import DEFAULT_KEY_PRECISION, CacheCategory, TTLPolicy, route_key
from geopricing.cache.layer import CacheLayer, CacheResult
from geopricing.core.exceptions import UpstreamUnavailableError
from geopricing.geo.coordinates import Coordinate, validate_coordinate, validate_waypoints
from geopricing.geo.distance import HaversineEstimator
from geopricing.geo.models import DistanceMatrix, RouteOptions, RouteProfile, RouteResult
from geopricing.geo.osrm_client import OSRMClient
from geopricing.metrics import record_route_resolution

logger = logging.getLogger(__name__)

_route_adapter = TypeAdapter(RouteResult)


class RouteResolver:
    def __init__(
        self,
        osrm_client: OSRMClient,
        cache: CacheLayer,
        ttl_policy: TTLPolicy | None = None,
        estimator: HaversineEstimator | None = None,
        key_precision: int = DEFAULT_KEY_PRECISION,
    ):
        self.osrm_client = osrm_client
        self.cache = cache
        self.ttl_policy = ttl_policy or TTLPolicy()
        self.estimator = estimator or HaversineEstimator()
        self.key_precision = key_precision

    async def resolve(
        self, waypoints: Sequence[Coordinate], options: RouteOptions | None = None
    ) -> RouteResult:
        result = await self.resolve_cached(waypoints, options)
        return result.value

    async def resolve_cached(
        self, waypoints: Sequence[Coordinate], options: RouteOptions | None = None
    ) -> CacheResult[RouteResult]:
        """Resolve a route through ``waypoints`` in order.

        Raises:
            ValidationError: fewer than two waypoints or a coordinate out of range.
            UpstreamUnavailableError: only for multi-waypoint or alternatives
                requests the provider could not serve.
        """
        points = validate_waypoints(waypoints)
        options = options or RouteOptions()

        if len(points) != 2 or options.alternatives:
            route = await self.osrm_client.get_route(points, options)
            record_route_resolution(route.source.value)
            return CacheResult(value=route, cached=False)

        key = route_key(points, options, self.key_precision)
        try:
            result = await self.cache.get_or_compute(
                key,
                lambda: self.osrm_client.get_route(points, options),
                self.ttl_policy.ttl_for(CacheCategory.ROUTING),
                _route_adapter,
                CacheCategory.ROUTING,
            )
        except UpstreamUnavailableError as e:
            logger.warning(
                f"Routing provider unavailable for {key}, using straight-line estimate: {e}"
            )
            route = self.estimator.estimate(points[0], points[1])
            record_route_resolution(route.source.value)
            return CacheResult(value=route, cached=False)

        record_route_resolution(result.value.source.value)
        return result

    async def matrix(
        self,
        sources: Sequence[Coordinate],
        destinations: Sequence[Coordinate],
        profile: RouteProfile = RouteProfile.CAR,
    ) -> DistanceMatrix:
        """Travel distance and duration for every source/destination pair."""
        for i, coord in enumerate(sources):
            validate_coordinate(coord, f"sources[{i}]")
        for i, coord in enumerate(destinations):
            validate_coordinate(coord, f"destinations[{i}]")
        return await self.osrm_client.get_table(sources, destinations, profile)
