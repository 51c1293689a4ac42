"""Departure-time multipliers for peak hours, night hours and weekends."""

from datetime import datetime

from geopricing.pricing.models import TimeSlotPolicy, TimeWindow

SATURDAY = 5
SUNDAY = 6


def _in_any(windows: tuple[TimeWindow, ...], minute_of_day: int) -> bool:
    return any(window.contains(minute_of_day) for window in windows)


def time_slot_multiplier(departure_time: datetime | None, policy: TimeSlotPolicy | None) -> float:
    """Get the combined time-slot multiplier for a departure.

    Weekend, peak and night multipliers stack. Each applies at most once,
    however many of its windows match. The departure's own wall-clock time is
    used; no timezone conversion happens here.

    Args:
        departure_time: Departure time, or None for "now / unspecified"
        policy: Time-slot policy, or None when the config has none

    Returns:
        Multiplier to apply to the distance and time portion of the price
    """
    if departure_time is None or policy is None:
        return 1.0

    multiplier = 1.0
    if departure_time.weekday() in (SATURDAY, SUNDAY):
        multiplier *= policy.weekend_multiplier

    minute_of_day = departure_time.hour * 60 + departure_time.minute
    if _in_any(policy.peak_hours, minute_of_day):
        multiplier *= policy.peak_multiplier
    if _in_any(policy.night_hours, minute_of_day):
        multiplier *= policy.night_multiplier

    return multiplier
