"""Great-circle distance and the straight-line route fallback.

This module provides Haversine distance calculations and the estimator used
whenever the routing provider cannot answer a two-point request.
"""

from math import atan2, cos, radians, sin, sqrt

from geopricing.geo.coordinates import Coordinate
from geopricing.geo.models import RouteResult, RouteSource

EARTH_RADIUS_M = 6_371_000  # Earth radius in meters

# Nominal urban speed of 30 km/h: two minutes per kilometer
FALLBACK_SECONDS_PER_KM = 120.0


def haversine_distance_m(
    lat1: float,
    lon1: float,
    lat2: float,
    lon2: float,
) -> float:
    """Calculate the great-circle distance between two points in meters.

    Uses the Haversine formula to calculate the shortest distance over
    the Earth's surface between two points specified by latitude/longitude.

    Args:
        lat1: Latitude of first point in degrees
        lon1: Longitude of first point in degrees
        lat2: Latitude of second point in degrees
        lon2: Longitude of second point in degrees

    Returns:
        Distance between the two points in meters
    """
    lat1, lon1, lat2, lon2 = map(radians, [lat1, lon1, lat2, lon2])
    dlat = lat2 - lat1
    dlon = lon2 - lon1

    a = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    # Rounding can push ``a`` a hair above 1 for antipodal points
    a = min(1.0, a)
    c = 2 * atan2(sqrt(a), sqrt(1 - a))

    return EARTH_RADIUS_M * c


class HaversineEstimator:
    """Straight-line route estimate; never fails and never performs I/O."""

    def __init__(self, seconds_per_km: float = FALLBACK_SECONDS_PER_KM):
        self.seconds_per_km = seconds_per_km

    def estimate(self, a: Coordinate, b: Coordinate) -> RouteResult:
        distance_m = haversine_distance_m(a.latitude, a.longitude, b.latitude, b.longitude)
        return RouteResult(
            distance_meters=distance_m,
            duration_seconds=(distance_m / 1000.0) * self.seconds_per_km,
            geometry=None,
            source=RouteSource.FALLBACK,
        )
