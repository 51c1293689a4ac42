"""Engine metrics module."""

from .prometheus_exporter import (
    REGISTRY,
    generate_metrics,
    observe_provider_request,
    record_cache_lookup,
    record_cache_store_error,
    record_price_estimate,
    record_route_resolution,
)

__all__ = [
    "REGISTRY",
    "generate_metrics",
    "observe_provider_request",
    "record_cache_lookup",
    "record_cache_store_error",
    "record_price_estimate",
    "record_route_resolution",
]
