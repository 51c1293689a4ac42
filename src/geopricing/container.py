"""Service wiring: builds the engine components from settings."""

import logging
from dataclasses import dataclass

import redis.asyncio as aioredis

from geopricing.cache import CacheLayer, CacheStore, InMemoryCacheStore, RedisCacheStore, TTLPolicy
from geopricing.geo.osrm_client import OSRMClient
from geopricing.geo.route_resolver import RouteResolver
from geopricing.geocoding.gateway import GeocodingGateway
from geopricing.geocoding.pelias_client import PeliasClient
from geopricing.pricing.engine import PricingEngine
from geopricing.pricing.tariffs import StaticTariffCatalog, TariffCatalog
from geopricing.settings import Settings

logger = logging.getLogger(__name__)


@dataclass
class Services:
    osrm_client: OSRMClient
    pelias_client: PeliasClient
    cache: CacheLayer
    route_resolver: RouteResolver
    geocoding: GeocodingGateway
    pricing: PricingEngine
    tariffs: TariffCatalog

    async def aclose(self) -> None:
        await self.osrm_client.aclose()
        await self.pelias_client.aclose()
        await self.cache.store.close()


def build_cache_store(settings: Settings) -> CacheStore:
    if settings.cache.backend == "memory":
        logger.info("Using in-memory cache store")
        return InMemoryCacheStore()

    client = aioredis.Redis(
        host=settings.redis.host,
        port=settings.redis.port,
        password=settings.redis.password or None,
        db=settings.redis.db,
        ssl=settings.redis.ssl,
        decode_responses=True,
    )
    logger.info(f"Using Redis cache store at {settings.redis.host}:{settings.redis.port}")
    return RedisCacheStore(client)


def build_services(
    settings: Settings,
    store: CacheStore | None = None,
    tariffs: TariffCatalog | None = None,
) -> Services:
    """Build every engine component.

    Each provider lazily creates its own pooled HTTP client; both are closed
    by ``Services.aclose``.
    """
    ttl_policy: TTLPolicy = settings.cache.ttl_policy()
    precision = settings.cache.key_precision

    osrm_client = OSRMClient(settings.osrm.base_url, timeout=settings.osrm.timeout_seconds)
    pelias_client = PeliasClient(
        settings.pelias.base_url,
        timeout=settings.pelias.timeout_seconds,
        api_key=settings.pelias.api_key or None,
    )

    cache = CacheLayer(store if store is not None else build_cache_store(settings))
    route_resolver = RouteResolver(osrm_client, cache, ttl_policy, key_precision=precision)

    return Services(
        osrm_client=osrm_client,
        pelias_client=pelias_client,
        cache=cache,
        route_resolver=route_resolver,
        geocoding=GeocodingGateway(pelias_client, cache, ttl_policy, key_precision=precision),
        pricing=PricingEngine(
            route_resolver,
            route_profile=settings.pricing.route_profile,
            currency=settings.pricing.currency,
        ),
        tariffs=tariffs or StaticTariffCatalog(),
    )
