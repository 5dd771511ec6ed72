"""Console logging setup for the node."""

import logging

__all__ = ["configure_logs"]


def configure_logs(debug: bool = False) -> None:
    """Configure console logging.

    Sets up:
    - Root logger at INFO level.
    - Framework loggers (aiohttp, asyncio) at WARNING level.
    - Application loggers (http_property) at DEBUG when debug is on,
      INFO otherwise.
    - Structured format with timestamp, level, module, and line number.

    Args:
        debug: Enable debug output for the node's own loggers.
    """
    log_format = "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d - %(message)s"
    date_format = "%d/%m/%y %H:%M:%S"

    formatter = logging.Formatter(log_format, date_format)
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    # Root logger
    root = logging.getLogger()
    root.setLevel(logging.INFO)
    root.addHandler(handler)

    # Suppress verbose framework loggers
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    logging.getLogger("http_property").setLevel(logging.DEBUG if debug else logging.INFO)
