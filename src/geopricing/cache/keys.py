"""Cache key derivation and per-category TTL policy.

Keys are category-prefixed and built only from the parameters that change
the answer, so equivalent requests collide regardless of formatting.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from geopricing.core.exceptions import ConfigurationError
from geopricing.geo.coordinates import Coordinate
from geopricing.geo.models import RouteOptions

DEFAULT_KEY_PRECISION = 4  # ~11 m at the equator


class CacheCategory(str, Enum):
    ROUTING = "routing"
    GEOCODING = "geocoding"


@dataclass(frozen=True)
class TTLPolicy:
    """Per-category time-to-live, in seconds.

    Routing reflects live road conditions and must never outlive geocoding.
    """

    routing_seconds: int = 1800
    geocoding_seconds: int = 86400

    def __post_init__(self) -> None:
        if self.routing_seconds <= 0 or self.geocoding_seconds <= 0:
            raise ConfigurationError("Cache TTLs must be positive")
        if self.geocoding_seconds < self.routing_seconds:
            raise ConfigurationError(
                f"Geocoding TTL ({self.geocoding_seconds}s) must be >= "
                f"routing TTL ({self.routing_seconds}s)"
            )

    def ttl_for(self, category: CacheCategory) -> int:
        if category is CacheCategory.ROUTING:
            return self.routing_seconds
        return self.geocoding_seconds


def _point(coordinate: Coordinate, precision: int) -> str:
    # Adding 0.0 folds -0.0 into 0.0 after rounding
    lat = round(coordinate.latitude, precision) + 0.0
    lon = round(coordinate.longitude, precision) + 0.0
    return f"{lat:.{precision}f},{lon:.{precision}f}"


def normalize_query(query: str) -> str:
    return " ".join(query.split()).lower()


def route_key(
    waypoints: Sequence[Coordinate],
    options: RouteOptions,
    precision: int = DEFAULT_KEY_PRECISION,
) -> str:
    points = "|".join(_point(wp, precision) for wp in waypoints)
    alternatives = "alt" if options.alternatives else "noalt"
    return f"{CacheCategory.ROUTING.value}:route:{options.profile.value}:{points}:{alternatives}"


def autocomplete_key(
    query: str,
    near: Coordinate | None,
    limit: int,
    sources: str | None = None,
    precision: int = DEFAULT_KEY_PRECISION,
) -> str:
    proximity = _point(near, precision) if near is not None else "none"
    source_part = ",".join(sorted(s.strip() for s in sources.split(",") if s.strip())) if sources else "all"
    return (
        f"{CacheCategory.GEOCODING.value}:autocomplete:"
        f"{normalize_query(query)}:{proximity}:{limit}:{source_part}"
    )


def search_key(query: str, limit: int) -> str:
    return f"{CacheCategory.GEOCODING.value}:search:{normalize_query(query)}:{limit}"


def reverse_key(coordinate: Coordinate, precision: int = DEFAULT_KEY_PRECISION) -> str:
    return f"{CacheCategory.GEOCODING.value}:reverse:{_point(coordinate, precision)}"
