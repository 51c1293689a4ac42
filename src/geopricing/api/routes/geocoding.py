from typing import Annotated

from fastapi import APIRouter, Query, Request

from geopricing.api.dependencies import GeocodingGatewayDep
from geopricing.api.models.geocoding import GeocodingResultsResponse, ReverseGeocodeResponse
from geopricing.api.rate_limit import GEOCODING_LIMIT, limiter
from geopricing.core.exceptions import ValidationError
from geopricing.geo.coordinates import Coordinate
from geopricing.geocoding.models import AutocompleteOptions

router = APIRouter()


def _optional_point(lat: float | None, lon: float | None) -> Coordinate | None:
    if lat is None and lon is None:
        return None
    if lat is None or lon is None:
        raise ValidationError("lat and lon must be given together")
    return Coordinate.of(lat, lon)


@router.get("/autocomplete", response_model=GeocodingResultsResponse)
@limiter.limit(GEOCODING_LIMIT)
async def autocomplete(
    request: Request,
    gateway: GeocodingGatewayDep,
    q: str,
    limit: int = 5,
    lat: Annotated[float | None, Query(description="Proximity bias latitude")] = None,
    lon: Annotated[float | None, Query(description="Proximity bias longitude")] = None,
    sources: str | None = None,
) -> GeocodingResultsResponse:
    options = AutocompleteOptions(near=_optional_point(lat, lon), limit=limit, sources=sources)
    result = await gateway.autocomplete(q, options)
    return GeocodingResultsResponse(results=result.value, cached=result.cached)


@router.get("/search", response_model=GeocodingResultsResponse)
@limiter.limit(GEOCODING_LIMIT)
async def search(
    request: Request, gateway: GeocodingGatewayDep, q: str, limit: int = 5
) -> GeocodingResultsResponse:
    result = await gateway.search(q, limit)
    return GeocodingResultsResponse(results=result.value, cached=result.cached)


@router.get("/reverse", response_model=ReverseGeocodeResponse)
@limiter.limit(GEOCODING_LIMIT)
async def reverse(
    request: Request, gateway: GeocodingGatewayDep, lat: float, lon: float
) -> ReverseGeocodeResponse:
    """Nearest address to a point. 404 when there is none."""
    result = await gateway.reverse(Coordinate.of(lat, lon))
    return ReverseGeocodeResponse(result=result.value, cached=result.cached)
