"""FastAPI application factory for the routing and pricing engine."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any, Literal

import httpx
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from slowapi.errors import RateLimitExceeded

from geopricing.api.middleware.request_context import RequestContextMiddleware
from geopricing.api.models.health import CacheStats, DetailedHealthResponse, ServiceHealth
from geopricing.api.rate_limit import limiter, rate_limit_exceeded_handler
from geopricing.api.routes import geocoding, pricing, routing
from geopricing.container import Services
from geopricing.core.exceptions import (
    DecodeError,
    GeoPricingError,
    NotFoundError,
    UpstreamUnavailableError,
    ValidationError,
)
from geopricing.metrics import generate_metrics
from geopricing.settings import Settings, get_settings

logger = logging.getLogger(__name__)

# Tunis city centre, used to probe the providers
_PROBE_LAT, _PROBE_LON = 36.8065, 10.1815


def error_status(exc: GeoPricingError) -> tuple[int, str]:
    """Map an engine error to an HTTP status and a stable error code."""
    if isinstance(exc, ValidationError):
        return 400, "validation_error"
    if isinstance(exc, DecodeError):
        return 400, "decode_error"
    if isinstance(exc, NotFoundError):
        return 404, "not_found"
    if isinstance(exc, UpstreamUnavailableError):
        return 503, "upstream_unavailable"
    return 500, "internal_error"


def _error_response(
    request: Request, status_code: int, code: str, message: str, details: Any = None
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {"code": code, "message": message, "details": details or {}},
            "request_id": getattr(request.state, "request_id", None),
        },
    )


def _determine_status(
    latency_ms: float | None,
    threshold_degraded: float = 100,
    threshold_unhealthy: float = 500,
) -> Literal["healthy", "degraded", "unhealthy"]:
    """Determine service status based on latency thresholds."""
    if latency_ms is None:
        return "unhealthy"
    if latency_ms < threshold_degraded:
        return "healthy"
    if latency_ms < threshold_unhealthy:
        return "degraded"
    return "unhealthy"


def create_app(services: Services, settings: Settings | None = None) -> FastAPI:
    """Create FastAPI application with injected dependencies.

    Args:
        services: Engine components, closed when the application shuts down
        settings: Application settings; loaded from the environment when omitted
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Manage application startup and shutdown."""
        logger.info("Geopricing API starting")
        yield
        await services.aclose()
        logger.info("Geopricing API stopped")

    app = FastAPI(
        title="Geospatial Routing & Pricing API",
        version="1.0.0",
        description="Route resolution, cached geocoding and price estimates",
        lifespan=lifespan,
    )

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)  # type: ignore[arg-type]

    # Set dependencies immediately (not in lifespan) so they're available for testing
    app.state.services = services
    app.state.settings = settings

    @app.exception_handler(GeoPricingError)
    async def engine_error_handler(request: Request, exc: GeoPricingError) -> JSONResponse:
        status_code, code = error_status(exc)
        if status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return _error_response(
            request, status_code, code, exc.message, jsonable_encoder(exc.details)
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return _error_response(
            request,
            400,
            "validation_error",
            "Request validation failed",
            {"errors": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return _error_response(request, 500, "internal_error", "An internal server error occurred")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.cors.origins.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestContextMiddleware)

    app.include_router(routing.router, prefix="/routing", tags=["routing"])
    app.include_router(geocoding.router, prefix="/geocoding", tags=["geocoding"])
    app.include_router(pricing.router, prefix="/pricing", tags=["pricing"])

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Liveness probe; does not touch any dependency."""
        return {"status": "healthy"}

    @app.get("/metrics")
    async def metrics() -> Response:
        return Response(
            content=generate_metrics(),
            media_type="text/plain; version=0.0.4; charset=utf-8",
        )

    @app.get("/health/detailed", response_model=DetailedHealthResponse)
    async def detailed_health_check() -> DetailedHealthResponse:
        """Detailed health check for every dependency with latency."""

        async def check_cache() -> ServiceHealth:
            start = time.perf_counter()
            if not await services.cache.ping():
                return ServiceHealth(status="unhealthy", message="Cache store unreachable")
            latency_ms = (time.perf_counter() - start) * 1000
            return ServiceHealth(
                status=_determine_status(latency_ms),
                latency_ms=round(latency_ms, 2),
                message="Connected",
            )

        async def check_provider(
            client: httpx.AsyncClient, url: str, params: dict[str, str], ok_message: str
        ) -> ServiceHealth:
            try:
                start = time.perf_counter()
                async with asyncio.timeout(5.0):
                    response = await client.get(url, params=params)
                latency_ms = (time.perf_counter() - start) * 1000
            except (TimeoutError, httpx.TimeoutException):
                return ServiceHealth(status="unhealthy", message="Request timed out")
            except httpx.HTTPError as e:
                return ServiceHealth(
                    status="unhealthy", message=f"Connection failed: {str(e)[:50]}"
                )

            if response.status_code == 200:
                return ServiceHealth(
                    status=_determine_status(latency_ms),
                    latency_ms=round(latency_ms, 2),
                    message=ok_message,
                )
            return ServiceHealth(
                status="degraded",
                latency_ms=round(latency_ms, 2),
                message=f"HTTP {response.status_code}",
            )

        osrm = services.osrm_client
        pelias = services.pelias_client
        cache_health, osrm_health, pelias_health = await asyncio.gather(
            check_cache(),
            check_provider(
                osrm.client,
                f"{osrm.base_url}/route/v1/car/{_PROBE_LON},{_PROBE_LAT};"
                f"{_PROBE_LON + 0.005},{_PROBE_LAT + 0.005}",
                {"overview": "false"},
                "Routing available",
            ),
            check_provider(
                pelias.client,
                f"{pelias.base_url}/v1/reverse",
                {"point.lat": str(_PROBE_LAT), "point.lon": str(_PROBE_LON), "size": "1"},
                "Geocoding available",
            ),
        )

        statuses = [cache_health.status, osrm_health.status, pelias_health.status]
        if all(s == "healthy" for s in statuses):
            overall: Literal["healthy", "degraded", "unhealthy"] = "healthy"
        elif cache_health.status == "unhealthy" and osrm_health.status == "unhealthy":
            overall = "unhealthy"
        else:
            overall = "degraded"

        return DetailedHealthResponse(
            overall_status=overall,
            cache=cache_health,
            osrm=osrm_health,
            pelias=pelias_health,
            cache_stats=CacheStats(**services.cache.get_cache_stats()),
            timestamp=datetime.now(UTC).isoformat(),
        )

    return app
