from pydantic import BaseModel

from geopricing.geocoding.models import GeocodingResult, ReverseGeocodeResult


class GeocodingResultsResponse(BaseModel):
    results: list[GeocodingResult]
    cached: bool


class ReverseGeocodeResponse(BaseModel):
    result: ReverseGeocodeResult
    cached: bool
