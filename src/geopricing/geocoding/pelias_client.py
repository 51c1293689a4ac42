"""Pelias geocoding provider client.

Pelias answers with GeoJSON feature collections; features are normalized to
``GeocodingResult`` / ``ReverseGeocodeResult``. Coordinates in GeoJSON are
``[lon, lat]``.
"""

from typing import Any

import httpx

from geopricing.core.exceptions import UpstreamResponseError
from geopricing.core.http_client import ProviderClient
from geopricing.geo.coordinates import Coordinate
from geopricing.geocoding.models import (
    AddressComponents,
    Bounds,
    GeocodingResult,
    PlaceType,
    ReverseGeocodeResult,
)

_LAYER_TYPES = {layer.value: layer for layer in PlaceType}


def format_address(props: dict[str, Any]) -> str:
    """Build a display address from Pelias feature properties."""
    parts: list[str] = []

    if props.get("housenumber") and props.get("street"):
        parts.append(f"{props['housenumber']} {props['street']}")
    elif props.get("street"):
        parts.append(props["street"])
    elif props.get("name"):
        parts.append(props["name"])

    for field in ("locality", "region", "country"):
        if props.get(field):
            parts.append(props[field])

    return ", ".join(parts) or "Unknown location"


def _feature_coordinate(feature: dict[str, Any]) -> Coordinate:
    lon, lat = feature["geometry"]["coordinates"][:2]
    return Coordinate(latitude=lat, longitude=lon)


def _properties(feature: Any) -> dict[str, Any]:
    if not isinstance(feature, dict):
        raise TypeError(f"feature is {type(feature).__name__}, not an object")
    props = feature.get("properties") or {}
    if not isinstance(props, dict):
        raise TypeError("feature properties is not an object")
    return props


def _parse_feature(feature: Any) -> GeocodingResult:
    props = _properties(feature)

    bounds = None
    bbox = feature.get("bbox")
    if isinstance(bbox, list) and len(bbox) == 4:
        bounds = Bounds(
            min_longitude=bbox[0],
            min_latitude=bbox[1],
            max_longitude=bbox[2],
            max_latitude=bbox[3],
        )

    address = format_address(props)
    return GeocodingResult(
        id=str(props.get("id") or props.get("gid") or ""),
        label=props.get("label") or address,
        address=address,
        coordinate=_feature_coordinate(feature),
        type=_LAYER_TYPES.get(props.get("layer"), PlaceType.ADDRESS),
        confidence=props.get("confidence") or 0.5,
        bounds=bounds,
    )


def _features(data: Any) -> list[dict[str, Any]]:
    if not isinstance(data, dict):
        raise UpstreamResponseError("Pelias response is not an object")
    features = data.get("features") or []
    if not isinstance(features, list):
        raise UpstreamResponseError("Pelias features is not a list")
    return features


class PeliasClient(ProviderClient):
    provider_name = "pelias"

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        api_key: str | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__(base_url, timeout=timeout, client=client)
        self.api_key = api_key

    def _with_key(self, params: dict[str, str]) -> dict[str, str]:
        if self.api_key:
            params["api_key"] = self.api_key
        return params

    def _transform(self, features: list[dict[str, Any]]) -> list[GeocodingResult]:
        try:
            return [_parse_feature(f) for f in features]
        except (KeyError, TypeError, ValueError) as e:
            raise UpstreamResponseError(f"Malformed Pelias feature: {e}") from e

    async def autocomplete(
        self,
        text: str,
        size: int = 5,
        near: Coordinate | None = None,
        sources: str | None = None,
    ) -> list[GeocodingResult]:
        params = {"text": text, "size": str(size)}
        if near is not None:
            params["focus.point.lat"] = str(near.latitude)
            params["focus.point.lon"] = str(near.longitude)
        if sources:
            params["sources"] = sources

        data = await self._get_json(
            "/v1/autocomplete", self._with_key(params), span_name="pelias.autocomplete"
        )
        return self._transform(_features(data))

    async def search(self, text: str, size: int = 5) -> list[GeocodingResult]:
        params = {"text": text, "size": str(size)}
        data = await self._get_json("/v1/search", self._with_key(params), span_name="pelias.search")
        return self._transform(_features(data))

    async def reverse(self, coordinate: Coordinate) -> ReverseGeocodeResult | None:
        """Nearest address to ``coordinate``, or None when Pelias has no candidate."""
        params = {
            "point.lat": str(coordinate.latitude),
            "point.lon": str(coordinate.longitude),
            "size": "1",
        }
        data = await self._get_json("/v1/reverse", self._with_key(params), span_name="pelias.reverse")

        features = _features(data)
        if not features:
            return None

        try:
            feature = features[0]
            props = _properties(feature)
            return ReverseGeocodeResult(
                address=format_address(props),
                place_id=str(props.get("id") or props.get("gid") or ""),
                coordinate=_feature_coordinate(feature),
                components=AddressComponents(
                    street=props.get("street"),
                    housenumber=props.get("housenumber"),
                    locality=props.get("locality"),
                    region=props.get("region"),
                    postalcode=props.get("postalcode"),
                    country=props.get("country"),
                ),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise UpstreamResponseError(f"Malformed Pelias feature: {e}") from e
