"""Healthcheck validator for container orchestration."""

import logging

from http_property.adapters.driven.config.settings import load_settings
from http_property.adapters.driven.logging.logging_config import configure_logs

__all__ = ["main"]

logger = logging.getLogger(__name__)


def main() -> int:
    """Run health check for container orchestration.

    Validates:
    - Required channel addresses are set.
    - Every address is a valid http URL.
    - At least one data output is wired.

    Returns:
        0 if healthy, 1 if unhealthy.
    """
    configure_logs()

    try:
        _ = load_settings()
    except Exception as exc:
        logger.error(f"Node healthcheck FAILED: {exc}")
        return 1

    logger.info("Node healthcheck OK")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
