"""Command line entrypoint: ``python -m bootstrap_server``."""

from __future__ import annotations

import asyncio
import sys

from bootstrap_server.app import create_app
from bootstrap_server.config import load_settings
from bootstrap_server.exceptions import ConfigurationError
from bootstrap_server.lifecycle import LifecycleController
from bootstrap_server.log import configure_logging, get_logger

logger = get_logger("bootstrap_server")


def main() -> None:
    try:
        settings = load_settings()
    except ConfigurationError as exc:
        configure_logging()
        logger.error(f"ERROR: {exc}")
        sys.exit(1)

    configure_logging(settings.diagnostic, settings.log_level)
    controller = LifecycleController(
        create_app(settings),
        host=settings.host,
        mode=settings.mode,
        shutdown_timeout=settings.shutdown_timeout_seconds,
    )
    try:
        asyncio.run(controller.run(settings.port))
    except ConfigurationError as exc:
        logger.error(f"ERROR: {exc}")
        sys.exit(1)


if __name__ == "__main__":
    main()
