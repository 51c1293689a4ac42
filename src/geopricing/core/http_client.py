"""Shared async HTTP plumbing for routing and geocoding providers."""

import asyncio
import logging
import time
from typing import Any

import httpx
from opentelemetry import trace

from geopricing.core.correlation import get_current_correlation_id
from geopricing.core.exceptions import (
    UpstreamResponseError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
)
from geopricing.metrics import observe_provider_request

logger = logging.getLogger(__name__)

_tracer = trace.get_tracer(__name__)


class ProviderClient:
    """Base class for a single external HTTP provider.

    One pooled ``httpx.AsyncClient`` is shared by every request to the
    provider. Each request is a single attempt bounded by ``timeout`` seconds
    end to end; on expiry the request task is cancelled, which returns its
    connection to the pool.
    """

    provider_name = "provider"

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def _get_json(self, path: str, params: dict[str, str], span_name: str) -> Any:
        """GET ``path`` and return the decoded JSON body.

        Raises:
            UpstreamTimeoutError: no complete answer within ``timeout``.
            UpstreamResponseError: non-2xx status or a body that is not JSON.
            UpstreamUnavailableError: connection or other transport failure.
        """
        url = f"{self.base_url}{path}"
        start_time = time.perf_counter()
        outcome = "error"

        with _tracer.start_as_current_span(span_name) as span:
            span.set_attribute("peer.service", self.provider_name)
            correlation_id = get_current_correlation_id()
            if correlation_id:
                span.set_attribute("correlation_id", correlation_id)

            try:
                async with asyncio.timeout(self.timeout):
                    response = await self.client.get(url, params=params)

                if not response.is_success:
                    outcome = "http_error"
                    raise UpstreamResponseError(
                        f"{self.provider_name} returned HTTP {response.status_code}",
                        details={"status_code": response.status_code},
                    )

                try:
                    data = response.json()
                except ValueError as e:
                    outcome = "bad_payload"
                    raise UpstreamResponseError(
                        f"{self.provider_name} returned a non-JSON body"
                    ) from e

                outcome = "ok"
                return data

            except (TimeoutError, httpx.TimeoutException) as e:
                outcome = "timeout"
                span.record_exception(e)
                raise UpstreamTimeoutError(
                    f"{self.provider_name} request timed out after {self.timeout}s"
                ) from e
            except httpx.HTTPError as e:
                outcome = "network_error"
                span.record_exception(e)
                raise UpstreamUnavailableError(f"{self.provider_name} network error: {e}") from e
            finally:
                latency = time.perf_counter() - start_time
                observe_provider_request(self.provider_name, outcome, latency)
                logger.debug(
                    f"{self.provider_name} GET {path} -> {outcome} in {latency * 1000:.1f}ms"
                )
