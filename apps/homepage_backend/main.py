"""
Homepage backend entry point.

Run with:
    python -m apps.homepage_backend.main

or under an external server:
    uvicorn apps.homepage_backend.main:app
"""

from __future__ import annotations

import logging
import os
import sys

import uvicorn

from apps.homepage_backend.app_factory import SERVICE_NAME, create_app
from apps.homepage_backend.config import get_config
from libs.core.common.exceptions import ConfigurationError
from libs.core.common.logging import configure_logging

logger = logging.getLogger(__name__)

app = create_app()


def main() -> int:
    """Load configuration, configure logging and serve until SIGINT/SIGTERM.

    Returns:
        Process exit code (0 on clean shutdown, 1 on configuration error)
    """
    try:
        config = get_config()
    except ConfigurationError as exc:
        configure_logging(service_name=SERVICE_NAME, log_level="INFO")
        logger.critical("Invalid configuration: %s", exc)
        return 1

    configure_logging(service_name=SERVICE_NAME, log_level=config.log_level)
    logger.info(
        "Starting homepage backend",
        extra={"port": config.server_port, "pid": os.getpid()},
    )

    # uvicorn stops accepting on SIGINT/SIGTERM and waits up to the grace
    # window for in-flight requests before running lifespan shutdown.
    uvicorn.run(
        create_app(config=config),
        host="0.0.0.0",
        port=config.server_port,
        log_config=None,
        timeout_graceful_shutdown=int(config.shutdown_grace_seconds),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
