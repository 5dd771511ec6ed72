"""Signal handling for graceful shutdown."""

import asyncio
import logging
import signal
from collections.abc import Callable

__all__ = ["make_stop_on_sigterm"]

logger = logging.getLogger(__name__)


def make_stop_on_sigterm() -> Callable[[], bool]:
    """Create SIGTERM/SIGINT-based stop flag for the node.

    Registers a handler that sets an asyncio.Event, returning an
    is_set-style callable that intake and the poll loop check between
    waits.

    Returns:
        Callable that returns True once a termination signal was received.
    """
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()

    def handle_signal() -> None:
        logger.info("Termination signal received, initiating graceful shutdown...")
        stop.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, handle_signal)

    return stop.is_set
