"""Health check models for service monitoring."""

from typing import Literal

from pydantic import BaseModel

HealthStatus = Literal["healthy", "degraded", "unhealthy"]


class ServiceHealth(BaseModel):
    """Health status for a single dependency."""

    status: HealthStatus
    latency_ms: float | None = None
    message: str | None = None


class CacheStats(BaseModel):
    requests: int
    hits: int
    misses: int
    hit_rate: float


class DetailedHealthResponse(BaseModel):
    """Detailed health check response for every dependency."""

    overall_status: HealthStatus
    cache: ServiceHealth
    osrm: ServiceHealth
    pelias: ServiceHealth
    cache_stats: CacheStats
    timestamp: str
