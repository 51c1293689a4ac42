from datetime import datetime
from unittest.mock import AsyncMock

import pytest

from geopricing.cache import CacheResult
from geopricing.core.exceptions import ValidationError
from geopricing.geo.coordinates import Coordinate
from geopricing.geo.models import RouteProfile, RouteResult, RouteSource
from geopricing.pricing.engine import PricingEngine, to_money
from geopricing.pricing.models import (
    PriceEstimateRequest,
    PricingConfig,
    TimeSlotPolicy,
    TimeWindow,
    TrafficLevel,
    TrafficMultipliers,
    TripType,
    TripTypeMultipliers,
    VehicleClass,
    VehicleTariff,
)

TUNIS = Coordinate(latitude=36.8065, longitude=10.1815)
SOUSSE = Coordinate(latitude=35.8256, longitude=10.6369)
DRIVER = Coordinate(latitude=36.8500, longitude=10.2000)

TUNIS_SOUSSE = RouteResult(
    distance_meters=140000.0, duration_seconds=7200.0, source=RouteSource.PROVIDER
)
ZERO_ROUTE = RouteResult(distance_meters=0.0, duration_seconds=0.0, source=RouteSource.PROVIDER)

CONFIG = PricingConfig(
    trip_type_multipliers=TripTypeMultipliers(one_way=1.0, round_trip=2.0),
    traffic_multipliers=TrafficMultipliers(low=1.0, medium=1.2, dense=1.5),
)


def make_tariff(**overrides) -> VehicleTariff:
    values = {
        "vehicle_class": VehicleClass.FOURGON,
        "base_fare": 10.0,
        "per_km_rate": 0.5,
        "per_minute_rate": 1.0,
        "convoyeur_surcharge": 50.0,
    }
    values.update(overrides)
    return VehicleTariff(**values)


def make_request(**overrides) -> PriceEstimateRequest:
    values = {
        "pickup": TUNIS,
        "dropoff": SOUSSE,
        "vehicle_class": VehicleClass.FOURGON,
        "trip_type": TripType.ONE_WAY,
        "traffic_level": TrafficLevel.MEDIUM,
    }
    values.update(overrides)
    return PriceEstimateRequest(**values)


def make_engine(route: RouteResult = TUNIS_SOUSSE, cached: bool = False) -> PricingEngine:
    resolver = AsyncMock()
    resolver.resolve_cached.return_value = CacheResult(value=route, cached=cached)
    return PricingEngine(resolver)


async def test_tunis_to_sousse_scenario():
    engine = make_engine()

    estimate = await engine.estimate(make_request(), make_tariff(), CONFIG)

    assert estimate.distance_cost == 70.0
    assert estimate.time_cost == 144.0
    assert estimate.subtotal == 224.0
    assert estimate.surcharges == 0.0
    assert estimate.total == 224.0
    assert estimate.currency == "TND"
    assert estimate.multiplier_applied.traffic == 1.2
    assert estimate.multiplier_applied.trip_type == 1.0
    assert estimate.route.source == RouteSource.PROVIDER


async def test_tunis_to_sousse_with_per_minute_rate_of_ten_cents():
    engine = make_engine()

    estimate = await engine.estimate(make_request(), make_tariff(per_minute_rate=0.1), CONFIG)

    # 120 min * 0.1 * 1.2 = 14.40
    assert estimate.time_cost == 14.4
    assert estimate.total == 94.4


async def test_route_uses_pricing_profile():
    engine = make_engine()

    await engine.estimate(make_request(), make_tariff(), CONFIG)

    waypoints, options = engine.route_resolver.resolve_cached.call_args.args
    assert waypoints == [TUNIS, SOUSSE]
    assert options.profile == RouteProfile.TRUCK
    assert options.alternatives is False


async def test_zero_distance_costs_base_fare():
    engine = make_engine(ZERO_ROUTE)

    estimate = await engine.estimate(make_request(dropoff=TUNIS), make_tariff(), CONFIG)

    assert estimate.total == 10.0


async def test_zero_distance_with_convoyeur():
    engine = make_engine(ZERO_ROUTE)

    estimate = await engine.estimate(
        make_request(dropoff=TUNIS, has_convoyeur=True), make_tariff(), CONFIG
    )

    assert estimate.surcharges == 50.0
    assert estimate.total == 60.0


async def test_round_trip_doubles_distance_and_time_not_base_fare():
    engine = make_engine()

    estimate = await engine.estimate(
        make_request(trip_type=TripType.ROUND_TRIP), make_tariff(), CONFIG
    )

    assert estimate.base_fare == 10.0
    assert estimate.distance_cost == 140.0
    assert estimate.time_cost == 288.0
    assert estimate.total == 438.0


async def test_traffic_scales_time_only():
    engine = make_engine()

    estimate = await engine.estimate(
        make_request(traffic_level=TrafficLevel.DENSE), make_tariff(), CONFIG
    )

    assert estimate.distance_cost == 70.0
    assert estimate.time_cost == 180.0


async def test_minimum_fare_applies():
    engine = make_engine(ZERO_ROUTE)

    estimate = await engine.estimate(
        make_request(dropoff=TUNIS), make_tariff(minimum_fare=25.0), CONFIG
    )

    assert estimate.minimum_fare_applied is True
    assert estimate.total == 25.0
    assert estimate.subtotal == 10.0


async def test_minimum_fare_not_applied_above_floor():
    engine = make_engine()

    estimate = await engine.estimate(make_request(), make_tariff(minimum_fare=25.0), CONFIG)

    assert estimate.minimum_fare_applied is False
    assert estimate.total == 224.0


async def test_time_slot_multiplier_scales_distance_and_time():
    engine = make_engine()
    config = CONFIG.model_copy(
        update={
            "time_slots": TimeSlotPolicy(
                peak_hours=(TimeWindow(start="07:00", end="09:00"),),
                peak_multiplier=1.5,
            )
        }
    )
    # Wednesday 08:00
    request = make_request(departure_time=datetime(2026, 10, 14, 8, 0))

    estimate = await engine.estimate(request, make_tariff(), config)

    assert estimate.multiplier_applied.time_slot == 1.5
    assert estimate.distance_cost == 105.0
    assert estimate.time_cost == 216.0
    assert estimate.total == 331.0


async def test_components_rounded_half_up():
    route = RouteResult(distance_meters=1005.0, duration_seconds=0.0, source=RouteSource.PROVIDER)
    engine = make_engine(route)

    estimate = await engine.estimate(
        make_request(), make_tariff(base_fare=0.0, per_km_rate=0.5), CONFIG
    )

    # 1.005 km * 0.5 = 0.5025 -> 0.50
    assert estimate.distance_cost == 0.5
    assert to_money(0.125) == to_money(0.13)


async def test_total_equals_sum_of_components():
    route = RouteResult(
        distance_meters=12345.0, duration_seconds=987.0, source=RouteSource.FALLBACK
    )
    engine = make_engine(route)

    estimate = await engine.estimate(make_request(has_convoyeur=True), make_tariff(), CONFIG)

    assert estimate.total == pytest.approx(
        estimate.base_fare + estimate.distance_cost + estimate.time_cost + estimate.surcharges
    )
    assert estimate.route.source == RouteSource.FALLBACK


async def test_total_rounds_components_not_the_unrounded_sum():
    route = RouteResult(distance_meters=1000.0, duration_seconds=60.0, source=RouteSource.PROVIDER)
    engine = make_engine(route)
    tariff = make_tariff(base_fare=0.0, per_km_rate=0.005, per_minute_rate=0.005)

    estimate = await engine.estimate(
        make_request(traffic_level=TrafficLevel.LOW), tariff, CONFIG
    )

    # 0.005 + 0.005 rounded once would be 0.01
    assert estimate.distance_cost == 0.01
    assert estimate.time_cost == 0.01
    assert estimate.total == 0.02


async def test_driver_to_pickup_resolved_separately():
    resolver = AsyncMock()
    driver_route = RouteResult(
        distance_meters=5000.0, duration_seconds=600.0, source=RouteSource.PROVIDER
    )

    async def resolve_cached(waypoints, options):
        if waypoints[0] == DRIVER:
            return CacheResult(value=driver_route, cached=True)
        return CacheResult(value=TUNIS_SOUSSE, cached=False)

    resolver.resolve_cached.side_effect = resolve_cached
    engine = PricingEngine(resolver)

    outcome = await engine.estimate_cached(
        make_request(driver_location=DRIVER), make_tariff(), CONFIG
    )

    assert resolver.resolve_cached.await_count == 2
    assert outcome.estimate.driver_to_pickup == driver_route
    assert outcome.driver_to_pickup_cached is True
    assert outcome.route_cached is False
    # The driver leg does not change the price
    assert outcome.estimate.total == 224.0


async def test_without_driver_location_single_resolution():
    engine = make_engine(cached=True)

    outcome = await engine.estimate_cached(make_request(), make_tariff(), CONFIG)

    assert engine.route_resolver.resolve_cached.await_count == 1
    assert outcome.route_cached is True
    assert outcome.driver_to_pickup_cached is None
    assert outcome.estimate.driver_to_pickup is None


async def test_negative_tariff_rejected_before_routing():
    engine = make_engine()
    tariff = VehicleTariff.model_construct(
        vehicle_class=VehicleClass.FOURGON,
        base_fare=-1.0,
        per_km_rate=0.5,
        per_minute_rate=0.1,
        convoyeur_surcharge=0.0,
        minimum_fare=0.0,
    )

    with pytest.raises(ValidationError):
        await engine.estimate(make_request(), tariff, CONFIG)

    engine.route_resolver.resolve_cached.assert_not_awaited()


async def test_non_positive_multiplier_rejected():
    engine = make_engine()
    config = PricingConfig.model_construct(
        trip_type_multipliers=TripTypeMultipliers.model_construct(one_way=0.0, round_trip=2.0),
        traffic_multipliers=TrafficMultipliers(),
        time_slots=None,
    )

    with pytest.raises(ValidationError):
        await engine.estimate(make_request(), make_tariff(), config)


async def test_invalid_pickup_rejected():
    engine = make_engine()
    request = make_request().model_copy(
        update={"pickup": Coordinate.model_construct(latitude=-100.0, longitude=0.0)}
    )

    with pytest.raises(ValidationError):
        await engine.estimate(request, make_tariff(), CONFIG)


async def test_tariff_for_other_vehicle_class_rejected():
    engine = make_engine()

    with pytest.raises(ValidationError):
        await engine.estimate(
            make_request(), make_tariff(vehicle_class=VehicleClass.CAMIONNETTE), CONFIG
        )


async def test_custom_currency():
    resolver = AsyncMock()
    resolver.resolve_cached.return_value = CacheResult(value=TUNIS_SOUSSE, cached=False)
    engine = PricingEngine(resolver, currency="EUR")

    estimate = await engine.estimate(make_request(), make_tariff(), CONFIG)

    assert estimate.currency == "EUR"
