"""FastAPI dependency injection providers."""

from typing import Annotated

from fastapi import Depends, Request

from geopricing.geo.route_resolver import RouteResolver
from geopricing.geocoding.gateway import GeocodingGateway
from geopricing.pricing.engine import PricingEngine
from geopricing.pricing.tariffs import TariffCatalog


def get_route_resolver(request: Request) -> RouteResolver:
    """Retrieve RouteResolver from app state."""
    return request.app.state.services.route_resolver


def get_geocoding_gateway(request: Request) -> GeocodingGateway:
    """Retrieve GeocodingGateway from app state."""
    return request.app.state.services.geocoding


def get_pricing_engine(request: Request) -> PricingEngine:
    return request.app.state.services.pricing


def get_tariff_catalog(request: Request) -> TariffCatalog:
    return request.app.state.services.tariffs


RouteResolverDep = Annotated[RouteResolver, Depends(get_route_resolver)]
GeocodingGatewayDep = Annotated[GeocodingGateway, Depends(get_geocoding_gateway)]
PricingEngineDep = Annotated[PricingEngine, Depends(get_pricing_engine)]
TariffCatalogDep = Annotated[TariffCatalog, Depends(get_tariff_catalog)]
