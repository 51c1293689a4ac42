"""Tariff and pricing-configuration sources."""

from typing import Protocol

from geopricing.core.exceptions import NotFoundError
from geopricing.pricing.models import (
    PricingConfig,
    TimeSlotPolicy,
    TimeWindow,
    TrafficMultipliers,
    TripTypeMultipliers,
    VehicleClass,
    VehicleTariff,
)

CONVOYEUR_SURCHARGE = 50.0

DEFAULT_TARIFFS = {
    VehicleClass.CAMIONNETTE: VehicleTariff(
        vehicle_class=VehicleClass.CAMIONNETTE,
        base_fare=10.0,
        per_km_rate=2.5,
        per_minute_rate=15.0 / 60,
        convoyeur_surcharge=CONVOYEUR_SURCHARGE,
        minimum_fare=10.0,
    ),
    VehicleClass.FOURGON: VehicleTariff(
        vehicle_class=VehicleClass.FOURGON,
        base_fare=12.0,
        per_km_rate=3.0,
        per_minute_rate=18.0 / 60,
        convoyeur_surcharge=CONVOYEUR_SURCHARGE,
        minimum_fare=12.0,
    ),
    VehicleClass.CAMION_3_5T: VehicleTariff(
        vehicle_class=VehicleClass.CAMION_3_5T,
        base_fare=15.0,
        per_km_rate=3.5,
        per_minute_rate=20.0 / 60,
        convoyeur_surcharge=CONVOYEUR_SURCHARGE,
        minimum_fare=15.0,
    ),
    VehicleClass.CAMION_LOURD: VehicleTariff(
        vehicle_class=VehicleClass.CAMION_LOURD,
        base_fare=20.0,
        per_km_rate=4.5,
        per_minute_rate=25.0 / 60,
        convoyeur_surcharge=CONVOYEUR_SURCHARGE,
        minimum_fare=20.0,
    ),
}

DEFAULT_PRICING_CONFIG = PricingConfig(
    trip_type_multipliers=TripTypeMultipliers(one_way=1.0, round_trip=2.0),
    traffic_multipliers=TrafficMultipliers(low=1.0, medium=1.05, dense=1.15),
    time_slots=TimeSlotPolicy(
        peak_hours=(
            TimeWindow(start="07:00", end="09:00"),
            TimeWindow(start="17:00", end="19:00"),
        ),
        night_hours=(TimeWindow(start="22:00", end="06:00"),),
        peak_multiplier=1.3,
        night_multiplier=1.2,
        weekend_multiplier=1.1,
    ),
)


class TariffCatalog(Protocol):
    def get_tariff(self, vehicle_class: VehicleClass) -> VehicleTariff: ...

    def get_pricing_config(self) -> PricingConfig: ...


class StaticTariffCatalog:
    """Read-only in-memory catalog, seeded with the marketplace defaults."""

    def __init__(
        self,
        tariffs: dict[VehicleClass, VehicleTariff] | None = None,
        config: PricingConfig | None = None,
    ):
        self._tariffs = dict(DEFAULT_TARIFFS if tariffs is None else tariffs)
        self._config = config or DEFAULT_PRICING_CONFIG

    def get_tariff(self, vehicle_class: VehicleClass) -> VehicleTariff:
        try:
            return self._tariffs[vehicle_class]
        except KeyError:
            raise NotFoundError(
                f"No tariff for vehicle class {vehicle_class.value}",
                details={"vehicle_class": vehicle_class.value},
            ) from None

    def get_pricing_config(self) -> PricingConfig:
        return self._config
