from fastapi import APIRouter, Request

from geopricing.api.dependencies import PricingEngineDep, TariffCatalogDep
from geopricing.api.models.pricing import EstimateCacheFlags, PriceEstimateResponse
from geopricing.api.rate_limit import ROUTE_LIMIT, limiter
from geopricing.pricing.models import PriceEstimateRequest

router = APIRouter()


@router.post("/estimate", response_model=PriceEstimateResponse)
@limiter.limit(ROUTE_LIMIT)
async def estimate_price(
    request: Request,
    body: PriceEstimateRequest,
    engine: PricingEngineDep,
    tariffs: TariffCatalogDep,
) -> PriceEstimateResponse:
    """Estimate a price for a pickup/dropoff pair with the catalog tariff."""
    tariff = tariffs.get_tariff(body.vehicle_class)
    outcome = await engine.estimate_cached(body, tariff, tariffs.get_pricing_config())
    return PriceEstimateResponse(
        estimate=outcome.estimate,
        cached=EstimateCacheFlags(
            route=outcome.route_cached,
            driver_to_pickup=outcome.driver_to_pickup_cached,
        ),
    )
