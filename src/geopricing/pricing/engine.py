"""Price estimation from resolved routes and tariffs.

Price = base fare
      + distance_km * per_km_rate * trip_type * time_slot
      + minutes * per_minute_rate * trip_type * traffic * time_slot
      + surcharges

Each component is rounded half-up to two decimals and the total is the sum
of the rounded components, so a breakdown always adds up to its total.
Rounding only the unrounded sum instead can differ from this by 0.01; the
breakdown is kept consistent at the cost of that difference.
The tariff minimum fare, when set, is a floor on the total.
"""

import asyncio
import logging
import math
from decimal import ROUND_HALF_UP, Decimal

from geopricing.cache.layer import CacheResult
from geopricing.core.exceptions import ValidationError
from geopricing.geo.coordinates import validate_coordinate
from geopricing.geo.models import RouteOptions, RouteProfile, RouteResult
from geopricing.geo.route_resolver import RouteResolver
from geopricing.metrics import record_price_estimate
from geopricing.pricing.models import (
    AppliedMultipliers,
    EstimateOutcome,
    PriceEstimate,
    PriceEstimateRequest,
    PricingConfig,
    VehicleTariff,
)
from geopricing.pricing.time_slots import time_slot_multiplier

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def to_money(value: float) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def _check_amount(name: str, value: float) -> None:
    if not isinstance(value, (int, float)) or not math.isfinite(value) or value < 0:
        raise ValidationError(f"{name} must be a non-negative number", details={name: value})


def _check_multiplier(name: str, value: float) -> None:
    if not isinstance(value, (int, float)) or not math.isfinite(value) or value <= 0:
        raise ValidationError(f"{name} must be a positive number", details={name: value})


def validate_pricing_inputs(
    request: PriceEstimateRequest, tariff: VehicleTariff, config: PricingConfig
) -> None:
    """Reject out-of-range inputs before any route is resolved.

    Values are never clamped. Models built with ``model_construct`` skip
    pydantic validation, so every number is checked here.
    """
    validate_coordinate(request.pickup, "pickup")
    validate_coordinate(request.dropoff, "dropoff")
    if request.driver_location is not None:
        validate_coordinate(request.driver_location, "driver_location")

    if tariff.vehicle_class != request.vehicle_class:
        raise ValidationError(
            "Tariff does not match the requested vehicle class",
            details={
                "requested": request.vehicle_class.value,
                "tariff": tariff.vehicle_class.value,
            },
        )

    for name in ("base_fare", "per_km_rate", "per_minute_rate", "convoyeur_surcharge", "minimum_fare"):
        _check_amount(name, getattr(tariff, name))

    trip = config.trip_type_multipliers
    traffic = config.traffic_multipliers
    _check_multiplier("trip_type_multipliers.one_way", trip.one_way)
    _check_multiplier("trip_type_multipliers.round_trip", trip.round_trip)
    for level in ("low", "medium", "dense"):
        _check_multiplier(f"traffic_multipliers.{level}", getattr(traffic, level))

    if config.time_slots is not None:
        slots = config.time_slots
        for name in ("peak_multiplier", "night_multiplier", "weekend_multiplier"):
            _check_multiplier(f"time_slots.{name}", getattr(slots, name))


class PricingEngine:
    def __init__(
        self,
        route_resolver: RouteResolver,
        route_profile: RouteProfile = RouteProfile.TRUCK,
        currency: str = "TND",
    ):
        self.route_resolver = route_resolver
        self.route_profile = route_profile
        self.currency = currency

    async def estimate(
        self, request: PriceEstimateRequest, tariff: VehicleTariff, config: PricingConfig
    ) -> PriceEstimate:
        outcome = await self.estimate_cached(request, tariff, config)
        return outcome.estimate

    async def estimate_cached(
        self, request: PriceEstimateRequest, tariff: VehicleTariff, config: PricingConfig
    ) -> EstimateOutcome:
        """Estimate a price and report whether each leg came from the cache.

        The driver-to-pickup leg is resolved concurrently with the trip
        route. It is informational and does not change the price.

        Raises:
            ValidationError: invalid coordinates, tariff or multipliers.
        """
        validate_pricing_inputs(request, tariff, config)
        options = RouteOptions(profile=self.route_profile)

        route_call = self.route_resolver.resolve_cached([request.pickup, request.dropoff], options)
        driver_leg: CacheResult[RouteResult] | None = None
        if request.driver_location is not None:
            route_leg, driver_leg = await asyncio.gather(
                route_call,
                self.route_resolver.resolve_cached(
                    [request.driver_location, request.pickup], options
                ),
            )
        else:
            route_leg = await route_call

        estimate = self.price_route(
            route_leg.value,
            request,
            tariff,
            config,
            driver_to_pickup=driver_leg.value if driver_leg else None,
        )
        record_price_estimate(request.vehicle_class.value)
        return EstimateOutcome(
            estimate=estimate,
            route_cached=route_leg.cached,
            driver_to_pickup_cached=driver_leg.cached if driver_leg else None,
        )

    def price_route(
        self,
        route: RouteResult,
        request: PriceEstimateRequest,
        tariff: VehicleTariff,
        config: PricingConfig,
        driver_to_pickup: RouteResult | None = None,
    ) -> PriceEstimate:
        """Apply the tariff to an already-resolved route. No I/O."""
        trip_multiplier = config.trip_type_multipliers.for_trip(request.trip_type)
        traffic_multiplier = config.traffic_multipliers.for_level(request.traffic_level)
        slot_multiplier = time_slot_multiplier(request.departure_time, config.time_slots)

        base_fare = to_money(tariff.base_fare)
        distance_cost = to_money(
            route.distance_km * tariff.per_km_rate * trip_multiplier * slot_multiplier
        )
        time_cost = to_money(
            route.duration_minutes
            * tariff.per_minute_rate
            * trip_multiplier
            * traffic_multiplier
            * slot_multiplier
        )
        subtotal = base_fare + distance_cost + time_cost
        surcharges = to_money(tariff.convoyeur_surcharge) if request.has_convoyeur else Decimal("0.00")

        total = subtotal + surcharges
        minimum_fare = to_money(tariff.minimum_fare)
        minimum_fare_applied = total < minimum_fare
        if minimum_fare_applied:
            total = minimum_fare

        logger.debug(
            f"Priced {request.vehicle_class.value} {route.distance_km:.2f}km "
            f"({route.source.value}): total={total} {self.currency}"
        )

        return PriceEstimate(
            route=route,
            driver_to_pickup=driver_to_pickup,
            vehicle_class=request.vehicle_class,
            base_fare=float(base_fare),
            distance_cost=float(distance_cost),
            time_cost=float(time_cost),
            subtotal=float(subtotal),
            surcharges=float(surcharges),
            multiplier_applied=AppliedMultipliers(
                trip_type=trip_multiplier,
                traffic=traffic_multiplier,
                time_slot=slot_multiplier,
            ),
            minimum_fare_applied=minimum_fare_applied,
            total=float(total),
            currency=self.currency,
        )
