"""Standalone HTTP server entrypoint."""

import logging

import uvicorn

from fee_gateway.api.app import create_app
from fee_gateway.app_logging import configure_logging
from fee_gateway.config import Settings
from fee_gateway.containers import build_container

_logger = logging.getLogger(__name__)


def startup_banner(settings: Settings) -> str:
    """Return the startup summary logged before serving."""
    base_url = f"http://localhost:{settings.port}"
    return "\n".join(
        [
            "Bridge Fee Gateway running on uvicorn",
            f"  Port: {settings.port}",
            f"  Environment: {settings.environment}",
            f"  Cache: {settings.cache_provider}",
            f"  Swagger Docs: {base_url}/swagger",
            f"  Health Check: {base_url}/health",
        ]
    )


def main() -> None:
    """Serve the API on the configured port."""
    configure_logging()
    settings = Settings()
    app = create_app(build_container(settings))
    _logger.info(startup_banner(settings))
    uvicorn.run(app, host="0.0.0.0", port=settings.port)  # noqa: S104


if __name__ == "__main__":
    main()
