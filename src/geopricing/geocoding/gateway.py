"""Validated, cached geocoding lookups."""

import logging

from pydantic import TypeAdapter

from geopricing.cache.keys import (
    DEFAULT_KEY_PRECISION,
    CacheCategory,
    TTLPolicy,
    autocomplete_key,
    reverse_key,
    search_key,
)
from geopricing.cache.layer import CacheLayer, CacheResult
from geopricing.core.exceptions import NotFoundError, ValidationError
from geopricing.geo.coordinates import Coordinate, validate_coordinate
from geopricing.geocoding.models import (
    MAX_AUTOCOMPLETE_LIMIT,
    AutocompleteOptions,
    GeocodingResult,
    ReverseGeocodeResult,
)
from geopricing.geocoding.pelias_client import PeliasClient

logger = logging.getLogger(__name__)

MIN_AUTOCOMPLETE_LENGTH = 2
MIN_SEARCH_LENGTH = 3

_results_adapter = TypeAdapter(list[GeocodingResult])
_reverse_adapter = TypeAdapter(ReverseGeocodeResult)


def _check_limit(limit: int) -> None:
    if not 1 <= limit <= MAX_AUTOCOMPLETE_LIMIT:
        raise ValidationError(
            f"limit must be between 1 and {MAX_AUTOCOMPLETE_LIMIT}",
            details={"limit": limit},
        )


def _check_query(query: str, min_length: int) -> str:
    text = (query or "").strip()
    if len(text) < min_length:
        raise ValidationError(
            f"Query must be at least {min_length} characters",
            details={"min_length": min_length},
        )
    return text


class GeocodingGateway:
    def __init__(
        self,
        pelias_client: PeliasClient,
        cache: CacheLayer,
        ttl_policy: TTLPolicy | None = None,
        key_precision: int = DEFAULT_KEY_PRECISION,
    ):
        self.pelias_client = pelias_client
        self.cache = cache
        self.ttl_policy = ttl_policy or TTLPolicy()
        self.key_precision = key_precision

    @property
    def _ttl(self) -> int:
        return self.ttl_policy.ttl_for(CacheCategory.GEOCODING)

    async def autocomplete(
        self, query: str, options: AutocompleteOptions | None = None
    ) -> CacheResult[list[GeocodingResult]]:
        """Suggest places matching a partial query.

        Raises:
            ValidationError: query shorter than two characters, limit outside
                1..20, or an invalid proximity point. No request is made.
            UpstreamUnavailableError: the provider could not be reached.
        """
        options = options or AutocompleteOptions()
        text = _check_query(query, MIN_AUTOCOMPLETE_LENGTH)
        _check_limit(options.limit)
        if options.near is not None:
            validate_coordinate(options.near, "near")

        key = autocomplete_key(text, options.near, options.limit, options.sources, self.key_precision)
        return await self.cache.get_or_compute(
            key,
            lambda: self.pelias_client.autocomplete(
                text, size=options.limit, near=options.near, sources=options.sources
            ),
            self._ttl,
            _results_adapter,
            CacheCategory.GEOCODING,
        )

    async def search(self, query: str, limit: int = 5) -> CacheResult[list[GeocodingResult]]:
        text = _check_query(query, MIN_SEARCH_LENGTH)
        _check_limit(limit)

        return await self.cache.get_or_compute(
            search_key(text, limit),
            lambda: self.pelias_client.search(text, size=limit),
            self._ttl,
            _results_adapter,
            CacheCategory.GEOCODING,
        )

    async def reverse(self, coordinate: Coordinate) -> CacheResult[ReverseGeocodeResult]:
        """Nearest address to ``coordinate``.

        Raises:
            NotFoundError: the provider answered with no candidate. The miss is
                not cached.
            UpstreamUnavailableError: the provider could not be reached or
                answered with an error.
        """
        validate_coordinate(coordinate)

        async def lookup() -> ReverseGeocodeResult:
            result = await self.pelias_client.reverse(coordinate)
            if result is None:
                logger.info(f"Reverse geocoding found no address near {coordinate.as_lon_lat()}")
                raise NotFoundError(
                    "No address found for coordinate",
                    details={"latitude": coordinate.latitude, "longitude": coordinate.longitude},
                )
            return result

        return await self.cache.get_or_compute(
            reverse_key(coordinate, self.key_precision),
            lookup,
            self._ttl,
            _reverse_adapter,
            CacheCategory.GEOCODING,
        )
