"""Prometheus metrics for the routing and pricing engine.

Route provenance is exported here so that a routing provider outage stays
visible even though two-point routing never surfaces an error to callers.
"""

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

# Use a separate registry to avoid default Python metrics
REGISTRY = CollectorRegistry()

# --- Counters (cumulative values) ---

geopricing_cache_lookups_total = Counter(
    "geopricing_cache_lookups_total",
    "Cache lookups by category and result",
    ["category", "result"],
    registry=REGISTRY,
)

geopricing_cache_store_errors_total = Counter(
    "geopricing_cache_store_errors_total",
    "Cache store operations that failed and were skipped",
    ["operation"],
    registry=REGISTRY,
)

geopricing_route_resolutions_total = Counter(
    "geopricing_route_resolutions_total",
    "Resolved routes by provenance",
    ["source"],
    registry=REGISTRY,
)

geopricing_provider_requests_total = Counter(
    "geopricing_provider_requests_total",
    "Outbound provider requests by provider and outcome",
    ["provider", "outcome"],
    registry=REGISTRY,
)

geopricing_price_estimates_total = Counter(
    "geopricing_price_estimates_total",
    "Price estimates produced by vehicle class",
    ["vehicle_class"],
    registry=REGISTRY,
)

# --- Histograms (latency distributions) ---

PROVIDER_LATENCY_BUCKETS = (0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, float("inf"))

geopricing_provider_latency_seconds = Histogram(
    "geopricing_provider_latency_seconds",
    "Outbound provider request latency in seconds",
    ["provider"],
    buckets=PROVIDER_LATENCY_BUCKETS,
    registry=REGISTRY,
)


def observe_provider_request(provider: str, outcome: str, latency_seconds: float) -> None:
    geopricing_provider_requests_total.labels(provider=provider, outcome=outcome).inc()
    geopricing_provider_latency_seconds.labels(provider=provider).observe(latency_seconds)


def record_cache_lookup(category: str, hit: bool) -> None:
    geopricing_cache_lookups_total.labels(
        category=category, result="hit" if hit else "miss"
    ).inc()


def record_cache_store_error(operation: str) -> None:
    geopricing_cache_store_errors_total.labels(operation=operation).inc()


def record_route_resolution(source: str) -> None:
    geopricing_route_resolutions_total.labels(source=source).inc()


def record_price_estimate(vehicle_class: str) -> None:
    geopricing_price_estimates_total.labels(vehicle_class=vehicle_class).inc()


def generate_metrics() -> bytes:
    """Render all engine metrics in Prometheus text format."""
    return generate_latest(REGISTRY)
