"""Routing value types."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from geopricing.geo import polyline_codec
from geopricing.geo.coordinates import Coordinate


class RouteSource(str, Enum):
    PROVIDER = "provider"
    FALLBACK = "fallback"


class RouteProfile(str, Enum):
    CAR = "car"
    TRUCK = "truck"
    FOOT = "foot"


class RouteOptions(BaseModel):
    """Options for a route request.

    Attributes:
        profile: Routing profile passed through to the provider.
        alternatives: Ask the provider for alternative routes. Requests with
            alternatives are never cached.
    """

    model_config = ConfigDict(frozen=True)

    profile: RouteProfile = RouteProfile.CAR
    alternatives: bool = False


class RouteLeg(BaseModel):
    model_config = ConfigDict(frozen=True)

    distance_meters: float = Field(ge=0)
    duration_seconds: float = Field(ge=0)


class RouteResult(BaseModel):
    """A resolved route and where it came from."""

    model_config = ConfigDict(frozen=True)

    distance_meters: float = Field(ge=0)
    duration_seconds: float = Field(ge=0)
    geometry: str | None = None
    geometry_precision: int = 6
    source: RouteSource
    legs: tuple[RouteLeg, ...] = ()
    alternatives: tuple["RouteResult", ...] = ()

    @property
    def distance_km(self) -> float:
        return self.distance_meters / 1000.0

    @property
    def duration_minutes(self) -> float:
        return self.duration_seconds / 60.0

    def decoded_geometry(self) -> list[Coordinate]:
        """Decode the route geometry; empty when no geometry was returned."""
        if not self.geometry:
            return []
        return polyline_codec.decode(self.geometry, self.geometry_precision)


class DistanceMatrix(BaseModel):
    """Provider travel table; ``None`` marks an unreachable pair."""

    model_config = ConfigDict(frozen=True)

    distances: list[list[float | None]]
    durations: list[list[float | None]]
