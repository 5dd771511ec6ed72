"""Application entrypoint."""

import argparse
import asyncio
import contextlib
import logging
from collections.abc import Sequence

from http_property.adapters.driven.channels.http_outports import HttpOutputPorts
from http_property.adapters.driven.config.settings import load_settings
from http_property.adapters.driven.http.client import HttpClient
from http_property.adapters.driven.logging.logging_config import configure_logs
from http_property.adapters.driven.metrics.tick_metrics import Metrics
from http_property.adapters.driving.docs import REGISTRY_ENTRY
from http_property.adapters.driving.http_inports import HttpInputServer
from http_property.adapters.driving.signals import make_stop_on_sigterm
from http_property.core.errors import StartupConfigurationError
from http_property.core.event_loop import run_node
from http_property.ports.settings import SettingsPort

__all__ = ["main", "parse_args", "run", "cli"]

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line flags.

    Channel flags left unset fall back to their environment variables.
    """
    parser = argparse.ArgumentParser(
        prog="http-property",
        description="Poll an HTTP endpoint and emit a typed property extracted from the response.",
    )
    parser.add_argument("--port.int", dest="interval_endpoint", help="Interval input port (PORT_INT)")
    parser.add_argument("--port.req", dest="request_endpoint", help="Request input port (PORT_REQ)")
    parser.add_argument("--port.tmpl", dest="template_endpoint", help="Template input port (PORT_TMPL)")
    parser.add_argument("--port.prop", dest="property_endpoint", help="Property output port (PORT_PROP)")
    parser.add_argument("--port.resp", dest="response_endpoint", help="Response output port (PORT_RESP)")
    parser.add_argument("--port.body", dest="body_endpoint", help="Body output port (PORT_BODY)")
    parser.add_argument("--port.err", dest="error_endpoint", help="Error output port (PORT_ERR)")
    parser.add_argument("--json", action="store_true", help="Print component documentation in JSON")
    parser.add_argument(
        "--debug",
        action="store_const",
        const=True,
        default=None,
        help="Enable debug mode (DEBUG)",
    )
    return parser.parse_args(argv)


async def run(settings_port: SettingsPort) -> int:
    """Bind the channels and run the node until stopped.

    Args:
        settings_port: Runtime settings.

    Returns:
        Process exit code.
    """
    metrics = Metrics()

    async with contextlib.AsyncExitStack() as stack:
        try:
            inputs = await stack.enter_async_context(HttpInputServer(settings_port.input_endpoints))
            outputs = await stack.enter_async_context(HttpOutputPorts(settings_port.output_endpoints))
            http = await stack.enter_async_context(
                HttpClient(tls_insecure_skip_verify=settings_port.tls_insecure_skip_verify)
            )
        except StartupConfigurationError as exc:
            logger.error(f"Startup error: {exc}")
            return EXIT_FAILURE

        try:
            await run_node(
                inputs=inputs.as_inputs(),
                outputs=outputs.as_outputs(),
                stop_fn=make_stop_on_sigterm(),
                request_fn=http.request,
                metrics=metrics,
            )
        except Exception as e:
            logger.error(f"Unhandled exception in node: {e}", exc_info=True)
            return EXIT_FAILURE

    logger.info(f"Node stopped: {metrics}")
    return EXIT_OK


async def main(argv: Sequence[str] | None = None) -> int:
    """Start the node.

    Startup sequence:
    1. Parse flags; print documentation and exit if requested.
    2. Configure logging.
    3. Load and validate channel configuration.
    4. Bind channels and run intake followed by the poll loop.
    5. Gracefully shutdown on SIGTERM/SIGINT.

    Returns:
        Process exit code.
    """
    args = parse_args(argv)

    if args.json:
        print(REGISTRY_ENTRY.to_json())
        return EXIT_OK

    configure_logs(debug=bool(args.debug))
    logger.info("Starting http-property node...")

    overrides = {
        "interval_endpoint": args.interval_endpoint,
        "request_endpoint": args.request_endpoint,
        "template_endpoint": args.template_endpoint,
        "property_endpoint": args.property_endpoint,
        "response_endpoint": args.response_endpoint,
        "body_endpoint": args.body_endpoint,
        "error_endpoint": args.error_endpoint,
        "debug": args.debug,
    }
    try:
        config = load_settings(overrides)
    except (RuntimeError, ValueError) as exc:
        logger.error(
            "Configuration error: %s\n"
            "Hint: set --port.int, --port.req, --port.tmpl and at least one of "
            "--port.prop, --port.resp, --port.body (or the PORT_* variables).",
            exc,
        )
        return EXIT_FAILURE

    if config.debug:
        logging.getLogger("http_property").setLevel(logging.DEBUG)

    return await run(config.to_port())


def cli() -> None:
    """Console script entry point."""
    try:
        raise SystemExit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user (Ctrl+C).")
        raise SystemExit(EXIT_OK) from None


if __name__ == "__main__":
    cli()
