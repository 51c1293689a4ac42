from pydantic import BaseModel

from geopricing.geo.coordinates import Coordinate
from geopricing.geo.models import DistanceMatrix, RouteProfile, RouteResult


class RouteRequest(BaseModel):
    waypoints: list[Coordinate]
    profile: RouteProfile = RouteProfile.CAR
    alternatives: bool = False


class RouteResponse(BaseModel):
    route: RouteResult
    cached: bool


class MatrixRequest(BaseModel):
    sources: list[Coordinate]
    destinations: list[Coordinate]
    profile: RouteProfile = RouteProfile.CAR


class MatrixResponse(BaseModel):
    matrix: DistanceMatrix
