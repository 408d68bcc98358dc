"""Entry point for running the deep research server."""

import logging
import sys

import uvicorn

from .config import get_settings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)


def main():
    """Run the deep research server."""
    settings = get_settings()

    logger.info("Starting deep research server on %s:%s", settings.app_host, settings.app_port)

    uvicorn.run(
        "deep_research_server.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
