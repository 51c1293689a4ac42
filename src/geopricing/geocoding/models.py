"""Geocoding value types."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from geopricing.geo.coordinates import Coordinate

MAX_AUTOCOMPLETE_LIMIT = 20


class PlaceType(str, Enum):
    VENUE = "venue"
    ADDRESS = "address"
    STREET = "street"
    LOCALITY = "locality"
    REGION = "region"


class Bounds(BaseModel):
    model_config = ConfigDict(frozen=True)

    min_latitude: float
    min_longitude: float
    max_latitude: float
    max_longitude: float


class AddressComponents(BaseModel):
    model_config = ConfigDict(frozen=True)

    street: str | None = None
    housenumber: str | None = None
    locality: str | None = None
    region: str | None = None
    postalcode: str | None = None
    country: str | None = None


class GeocodingResult(BaseModel):
    """A candidate place returned by autocomplete or search."""

    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    address: str
    coordinate: Coordinate
    type: PlaceType = PlaceType.ADDRESS
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    bounds: Bounds | None = None


class ReverseGeocodeResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    address: str
    place_id: str
    coordinate: Coordinate
    components: AddressComponents = AddressComponents()


class AutocompleteOptions(BaseModel):
    """Options for an autocomplete lookup.

    Attributes:
        near: Proximity bias; results close to this point rank higher.
        limit: Maximum number of candidates, 1 to 20.
        sources: Comma-separated provider data sources, e.g. ``osm,oa,wof``.
    """

    model_config = ConfigDict(frozen=True)

    near: Coordinate | None = None
    limit: int = 5
    sources: str | None = None
