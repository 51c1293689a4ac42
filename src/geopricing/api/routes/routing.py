from fastapi import APIRouter, Request

from geopricing.api.dependencies import RouteResolverDep
from geopricing.api.models.routing import (
    MatrixRequest,
    MatrixResponse,
    RouteRequest,
    RouteResponse,
)
from geopricing.api.rate_limit import ROUTE_LIMIT, limiter
from geopricing.geo.models import RouteOptions

router = APIRouter()


@router.post("/route", response_model=RouteResponse)
@limiter.limit(ROUTE_LIMIT)
async def resolve_route(
    request: Request, body: RouteRequest, resolver: RouteResolverDep
) -> RouteResponse:
    """Resolve a route through the given waypoints.

    Two-point requests always answer; when the routing provider is down the
    route is a straight-line estimate with ``source="fallback"``.
    """
    options = RouteOptions(profile=body.profile, alternatives=body.alternatives)
    result = await resolver.resolve_cached(body.waypoints, options)
    return RouteResponse(route=result.value, cached=result.cached)


@router.post("/matrix", response_model=MatrixResponse)
@limiter.limit(ROUTE_LIMIT)
async def distance_matrix(
    request: Request, body: MatrixRequest, resolver: RouteResolverDep
) -> MatrixResponse:
    matrix = await resolver.matrix(body.sources, body.destinations, body.profile)
    return MatrixResponse(matrix=matrix)
