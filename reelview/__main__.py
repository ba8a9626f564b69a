"""Module executed when running ``python -m reelview``."""

from __future__ import annotations

import logging

import uvicorn

from app.config import get_settings

logger = logging.getLogger(__name__)


def main() -> None:
    """Serve the film catalog with uvicorn using the configured settings."""

    logging.basicConfig(level=logging.INFO)
    settings = get_settings()
    logger.info(
        "Serving %s against %s", settings.app_name, settings.data_service_base_url
    )
    uvicorn.run(
        "app.main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.environment == "development",
    )


if __name__ == "__main__":  # pragma: no cover - runtime entrypoint
    main()
