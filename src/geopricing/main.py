"""
Geospatial Routing & Pricing Engine - Entry Point

Loads settings from the environment, configures logging, wires the engine
components and serves the HTTP API with uvicorn.
"""

import logging

import uvicorn

from geopricing.api.app import create_app
from geopricing.container import build_services
from geopricing.engine_logging import setup_logging
from geopricing.settings import get_settings

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()
    setup_logging(
        level=settings.service.log_level,
        json_output=settings.service.log_format == "json",
        environment=settings.service.environment,
    )

    services = build_services(settings)
    app = create_app(services, settings)

    logger.info(
        f"Starting geopricing API on port {settings.service.port} "
        f"(OSRM {settings.osrm.base_url}, cache backend {settings.cache.backend})"
    )
    uvicorn.run(
        app,
        host=settings.service.host,
        port=settings.service.port,
        log_level=settings.service.log_level.lower(),
    )


if __name__ == "__main__":
    main()
