"""Pricing inputs and the price breakdown."""

import re
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from geopricing.geo.coordinates import Coordinate
from geopricing.geo.models import RouteResult

_HHMM = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


class VehicleClass(str, Enum):
    CAMIONNETTE = "camionnette"
    FOURGON = "fourgon"
    CAMION_3_5T = "camion_3_5t"
    CAMION_LOURD = "camion_lourd"


class TripType(str, Enum):
    ONE_WAY = "one_way"
    ROUND_TRIP = "round_trip"


class TrafficLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    DENSE = "dense"


class VehicleTariff(BaseModel):
    """Rates for one vehicle class. Amounts are in the engine currency."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    vehicle_class: VehicleClass
    base_fare: float = Field(ge=0)
    per_km_rate: float = Field(ge=0)
    per_minute_rate: float = Field(ge=0)
    convoyeur_surcharge: float = Field(default=0.0, ge=0)
    minimum_fare: float = Field(default=0.0, ge=0)


class TripTypeMultipliers(BaseModel):
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    one_way: float = Field(default=1.0, gt=0)
    round_trip: float = Field(default=2.0, gt=0)

    def for_trip(self, trip_type: TripType) -> float:
        return self.round_trip if trip_type is TripType.ROUND_TRIP else self.one_way


class TrafficMultipliers(BaseModel):
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    low: float = Field(default=1.0, gt=0)
    medium: float = Field(default=1.05, gt=0)
    dense: float = Field(default=1.15, gt=0)

    def for_level(self, level: TrafficLevel) -> float:
        return getattr(self, level.value)


class TimeWindow(BaseModel):
    """Daily ``HH:MM`` window, inclusive at both ends.

    A window whose end is earlier than its start crosses midnight.
    """

    model_config = ConfigDict(frozen=True)

    start: str
    end: str

    @field_validator("start", "end")
    @classmethod
    def validate_hhmm(cls, v: str) -> str:
        if not _HHMM.match(v):
            raise ValueError(f"Time must be HH:MM, got {v!r}")
        return v

    @staticmethod
    def _minutes(value: str) -> int:
        hours, minutes = value.split(":")
        return int(hours) * 60 + int(minutes)

    def contains(self, minute_of_day: int) -> bool:
        start, end = self._minutes(self.start), self._minutes(self.end)
        if start <= end:
            return start <= minute_of_day <= end
        return minute_of_day >= start or minute_of_day <= end


class TimeSlotPolicy(BaseModel):
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    peak_hours: tuple[TimeWindow, ...] = ()
    night_hours: tuple[TimeWindow, ...] = ()
    peak_multiplier: float = Field(default=1.3, gt=0)
    night_multiplier: float = Field(default=1.2, gt=0)
    weekend_multiplier: float = Field(default=1.1, gt=0)


class PricingConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    trip_type_multipliers: TripTypeMultipliers = TripTypeMultipliers()
    traffic_multipliers: TrafficMultipliers = TrafficMultipliers()
    time_slots: TimeSlotPolicy | None = None


class PriceEstimateRequest(BaseModel):
    """A price estimate request.

    Attributes:
        departure_time: Local departure time. Only used when the pricing
            config carries a time-slot policy.
        driver_location: Current driver position; when set, the
            driver-to-pickup leg is resolved and reported alongside the price.
    """

    model_config = ConfigDict(frozen=True)

    pickup: Coordinate
    dropoff: Coordinate
    vehicle_class: VehicleClass
    trip_type: TripType = TripType.ONE_WAY
    has_convoyeur: bool = False
    traffic_level: TrafficLevel = TrafficLevel.LOW
    driver_location: Coordinate | None = None
    departure_time: datetime | None = None


class AppliedMultipliers(BaseModel):
    model_config = ConfigDict(frozen=True)

    trip_type: float
    traffic: float
    time_slot: float = 1.0


class PriceEstimate(BaseModel):
    """Price breakdown for one request.

    ``distance_cost`` and ``time_cost`` already include their multipliers;
    ``subtotal`` is base fare plus both costs, before surcharges.
    """

    model_config = ConfigDict(frozen=True)

    route: RouteResult
    driver_to_pickup: RouteResult | None = None
    vehicle_class: VehicleClass
    base_fare: float
    distance_cost: float
    time_cost: float
    subtotal: float
    surcharges: float
    multiplier_applied: AppliedMultipliers
    minimum_fare_applied: bool = False
    total: float
    currency: str


class EstimateOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    estimate: PriceEstimate
    route_cached: bool
    driver_to_pickup_cached: bool | None = None
