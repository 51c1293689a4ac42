from pydantic import BaseModel

from geopricing.pricing.models import PriceEstimate


class EstimateCacheFlags(BaseModel):
    route: bool
    driver_to_pickup: bool | None = None


class PriceEstimateResponse(BaseModel):
    estimate: PriceEstimate
    cached: EstimateCacheFlags
