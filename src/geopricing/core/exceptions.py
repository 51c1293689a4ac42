"""Standardized exception hierarchy for the routing and pricing engine."""

from typing import Any


class GeoPricingError(Exception):
    """Base exception for all engine errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class TransientError(GeoPricingError):
    """Errors that may succeed if the caller tries again later."""

    pass


class UpstreamUnavailableError(TransientError):
    """A routing or geocoding provider could not produce an answer."""

    pass


class UpstreamTimeoutError(UpstreamUnavailableError):
    """Provider did not answer within the request timeout."""

    pass


class UpstreamResponseError(UpstreamUnavailableError):
    """Provider answered with a non-2xx status or an unreadable payload."""

    pass


class NoRouteFoundError(UpstreamUnavailableError):
    """Routing provider answered but returned no usable route."""

    pass


class PermanentError(GeoPricingError):
    """Errors that will not succeed on retry."""

    pass


class ValidationError(PermanentError):
    """Invalid input, rejected before any network call."""

    pass


class NotFoundError(PermanentError):
    """A lookup legitimately has no answer."""

    pass


class DecodeError(PermanentError):
    """Malformed encoded polyline."""

    pass


class ConfigurationError(PermanentError):
    """Missing or invalid configuration."""

    pass
