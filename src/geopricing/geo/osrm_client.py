"""OSRM routing provider client.

Talks to OSRM over HTTP and returns normalized ``RouteResult`` objects.
Coordinates are sent as ``lng,lat`` pairs joined by semicolons.
"""

from collections.abc import Sequence
from typing import Any

from geopricing.core.exceptions import NoRouteFoundError, UpstreamResponseError
from geopricing.core.http_client import ProviderClient
from geopricing.geo.coordinates import Coordinate
from geopricing.geo.models import (
    DistanceMatrix,
    RouteLeg,
    RouteOptions,
    RouteProfile,
    RouteResult,
    RouteSource,
)

GEOMETRY_PRECISION = 6


def format_coordinates(coordinates: Sequence[Coordinate]) -> str:
    """Convert coordinates to OSRM format 'lon,lat;lon,lat;...'."""
    return ";".join(c.as_lon_lat() for c in coordinates)


def _parse_route(route: Any) -> RouteResult:
    if not isinstance(route, dict):
        raise TypeError(f"route entry is {type(route).__name__}, not an object")
    legs = tuple(
        RouteLeg(distance_meters=float(leg["distance"]), duration_seconds=float(leg["duration"]))
        for leg in route.get("legs") or []
    )
    geometry = route.get("geometry")
    return RouteResult(
        distance_meters=float(route["distance"]),
        duration_seconds=float(route["duration"]),
        geometry=geometry if isinstance(geometry, str) and geometry else None,
        geometry_precision=GEOMETRY_PRECISION,
        source=RouteSource.PROVIDER,
        legs=legs,
    )


class OSRMClient(ProviderClient):
    provider_name = "osrm"

    async def get_route(
        self, waypoints: Sequence[Coordinate], options: RouteOptions | None = None
    ) -> RouteResult:
        """Get the best route through ``waypoints`` in order.

        Alternative routes, when requested and returned, are attached to the
        main route's ``alternatives``.

        Raises:
            NoRouteFoundError: status other than "Ok" or an empty route list.
            UpstreamResponseError: non-2xx response or malformed route payload.
            UpstreamTimeoutError: no answer within the timeout.
            UpstreamUnavailableError: transport failure.
        """
        options = options or RouteOptions()
        path = f"/route/v1/{options.profile.value}/{format_coordinates(waypoints)}"
        params = {"overview": "full", "geometries": "polyline6", "steps": "false"}
        if options.alternatives:
            params["alternatives"] = "true"

        data = await self._get_json(path, params, span_name="osrm.route")

        if not isinstance(data, dict):
            raise UpstreamResponseError("OSRM route response is not an object")
        if data.get("code") != "Ok":
            raise NoRouteFoundError(
                f"OSRM error: {data.get('message') or data.get('code') or 'Unknown error'}",
                details={"osrm_code": data.get("code")},
            )
        routes = data.get("routes")
        if not routes:
            raise NoRouteFoundError("OSRM returned no routes")

        try:
            main = _parse_route(routes[0])
            if options.alternatives and len(routes) > 1:
                alternatives = tuple(_parse_route(r) for r in routes[1:])
                main = main.model_copy(update={"alternatives": alternatives})
        except (KeyError, TypeError, ValueError) as e:
            raise UpstreamResponseError(f"Malformed OSRM route: {e}") from e

        return main

    async def get_table(
        self,
        sources: Sequence[Coordinate],
        destinations: Sequence[Coordinate],
        profile: RouteProfile = RouteProfile.CAR,
    ) -> DistanceMatrix:
        """Call the OSRM /table endpoint for a sources x destinations matrix."""
        if not sources or not destinations:
            return DistanceMatrix(distances=[], durations=[])

        # OSRM computes all-to-all when sources equal destinations, so
        # the points are not duplicated in the URL
        if list(sources) == list(destinations):
            coordinates = format_coordinates(sources)
            params = {"annotations": "duration,distance"}
        else:
            coordinates = format_coordinates([*sources, *destinations])
            params = {
                "sources": ";".join(str(i) for i in range(len(sources))),
                "destinations": ";".join(
                    str(i) for i in range(len(sources), len(sources) + len(destinations))
                ),
                "annotations": "duration,distance",
            }

        data = await self._get_json(
            f"/table/v1/{profile.value}/{coordinates}", params, span_name="osrm.table"
        )

        if not isinstance(data, dict):
            raise UpstreamResponseError("OSRM table response is not an object")
        if data.get("code") != "Ok":
            raise NoRouteFoundError(
                f"OSRM table error: {data.get('message') or data.get('code') or 'Unknown error'}",
                details={"osrm_code": data.get("code")},
            )

        try:
            return DistanceMatrix(distances=data["distances"], durations=data["durations"])
        except (KeyError, ValueError) as e:
            raise UpstreamResponseError(f"Malformed OSRM table: {e}") from e
