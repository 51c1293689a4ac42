"""Coordinate value type and input validation."""

import math
from collections.abc import Sequence

import pydantic
from pydantic import BaseModel, ConfigDict, Field

from geopricing.core.exceptions import ValidationError


class Coordinate(BaseModel):
    """Immutable WGS84 point."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)

    @classmethod
    def of(cls, latitude: float, longitude: float) -> "Coordinate":
        """Build a coordinate, raising the engine's ValidationError on bad input."""
        try:
            return cls(latitude=latitude, longitude=longitude)
        except pydantic.ValidationError as e:
            raise ValidationError(
                f"Invalid coordinate ({latitude}, {longitude})",
                details={"errors": e.errors(include_url=False)},
            ) from e

    def as_lon_lat(self) -> str:
        return f"{self.longitude},{self.latitude}"


def validate_coordinate(coordinate: Coordinate, field: str = "coordinate") -> Coordinate:
    """Re-check a coordinate's range.

    Models built with ``model_construct`` skip pydantic validation, so the
    engine checks again before any network call.
    """
    lat, lon = coordinate.latitude, coordinate.longitude
    if not (isinstance(lat, (int, float)) and isinstance(lon, (int, float))):
        raise ValidationError(f"{field} must be numeric")
    if not (math.isfinite(lat) and math.isfinite(lon)):
        raise ValidationError(f"{field} must be finite", details={"field": field})
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
        raise ValidationError(
            f"{field} out of range: ({lat}, {lon})",
            details={"field": field, "latitude": lat, "longitude": lon},
        )
    return coordinate


def validate_waypoints(waypoints: Sequence[Coordinate]) -> list[Coordinate]:
    if len(waypoints) < 2:
        raise ValidationError(
            "At least two waypoints are required to compute a route",
            details={"count": len(waypoints)},
        )
    return [validate_coordinate(wp, f"waypoints[{i}]") for i, wp in enumerate(waypoints)]
