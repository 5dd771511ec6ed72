"""Main event loop that polls the configured endpoint on every tick."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from http_property.core.errors import (
    ExtractionError,
    ResponseConversionError,
    TransportError,
    UnsupportedContentType,
)
from http_property.core.extraction import extract_value
from http_property.core.intake import STOP_CHECK_INTERVAL_SEC, collect_run_config
from http_property.core.models import PropertyEnvelope, RunConfig
from http_property.ports.channels import NodeInputs, NodeOutputs, Packet
from http_property.ports.http import HttpPort, ResponseView
from http_property.ports.metrics import MetricsPort, TickAttemptDto, TickOutcome

__all__ = ["run_node", "start_main_loop", "run_tick", "get_now_time"]

logger = logging.getLogger(__name__)

RequestFn = Callable[[HttpPort], Awaitable[ResponseView]]


def get_now_time() -> float:
    """Get current monotonic time in seconds.

    Uses event loop's monotonic clock for accurate scheduling
    without wall-clock drift.

    Returns:
        Current time in seconds (monotonic).
    """
    return asyncio.get_running_loop().time()


def _report_error(outputs: NodeOutputs, message: str) -> None:
    if outputs.error is not None:
        outputs.error.send_nowait(Packet.from_text(message))


async def _poll(
    config: RunConfig,
    outputs: NodeOutputs,
    request_fn: RequestFn,
    req: HttpPort,
    timestamp: int,
) -> tuple[TickOutcome, int | None, PropertyEnvelope | None]:
    request = config.request
    try:
        response = await request_fn(req)
    except TransportError as e:
        logger.error(f"ERROR performing HTTP {request.method} {request.url}: {e}")
        _report_error(outputs, str(e))
        return TickOutcome.REQUEST_FAILED, None, None
    except ResponseConversionError as e:
        logger.error(f"ERROR converting response to reply: {e}")
        _report_error(outputs, str(e))
        return TickOutcome.REQUEST_FAILED, None, None

    logger.debug(f"HTTP {request.method} {request.url} -> {response.status_line}")

    if outputs.response is not None:
        await outputs.response.send(Packet(response.to_json()))
    if outputs.body is not None:
        await outputs.body.send(Packet(response.body))

    if outputs.property is None:
        return TickOutcome.RAW_ONLY, response.status, None

    template = config.template
    try:
        value = extract_value(response.body, request, template)
    except UnsupportedContentType as e:
        logger.warning(f"WARNING {e}")
        return TickOutcome.UNSUPPORTED_CONTENT, response.status, None
    except ExtractionError as e:
        logger.warning(f"Extraction failed for property {template.id!r}: {e}")
        return TickOutcome.EXTRACTION_FAILED, response.status, None

    envelope = PropertyEnvelope(
        id=template.id,
        name=template.name,
        group=template.group,
        timestamp=timestamp,
        value=value,
    )
    await outputs.property.send(Packet(envelope.to_json()))
    return TickOutcome.EMITTED, response.status, envelope


async def run_tick(
    config: RunConfig,
    outputs: NodeOutputs,
    request_fn: RequestFn,
    ideal_time_sec: float,
    wall_time_fn: Callable[[], float] = time.time,
    metrics: MetricsPort | None = None,
) -> PropertyEnvelope | None:
    """Execute one poll: request, fan out raw data, extract and emit.

    Transport and response conversion errors go to the error sink. Content
    type and extraction problems are only logged.

    Args:
        config: Complete node configuration.
        outputs: Attached sinks.
        request_fn: Async function performing the HTTP call.
        ideal_time_sec: Monotonic time the tick was scheduled for.
        wall_time_fn: Source of the envelope timestamp.
        metrics: Optional collector told how the tick ended.

    Returns:
        The emitted envelope, or None if nothing was emitted.
    """
    timestamp = int(wall_time_fn())
    req = HttpPort.from_descriptor(config.request, ideal_time_sec=ideal_time_sec)
    fired_at = get_now_time()

    outcome, status_code, envelope = await _poll(config, outputs, request_fn, req, timestamp)

    if metrics is not None:
        metrics.update(
            TickAttemptDto(
                scheduled_at_sec=ideal_time_sec,
                fired_at_sec=fired_at,
                outcome=outcome,
                status_code=status_code,
            )
        )
        logger.debug(f"Tick metrics: {metrics}")
    return envelope


async def _wait_until(deadline: float, stop_fn: Callable[[], bool]) -> bool:
    """Sleep until the monotonic deadline, waking up to check stop_fn.

    Returns:
        True when the deadline was reached, False when stop was requested.
    """
    while True:
        remaining = deadline - get_now_time()
        await asyncio.sleep(max(0, min(remaining, STOP_CHECK_INTERVAL_SEC)))
        if stop_fn():
            return False
        if remaining <= STOP_CHECK_INTERVAL_SEC:
            return True


async def start_main_loop(
    config: RunConfig,
    outputs: NodeOutputs,
    stop_fn: Callable[[], bool],
    request_fn: RequestFn,
    metrics: MetricsPort | None = None,
) -> None:
    """Run the periodic poll loop.

    Periodically:
    1. Sleep until the next tick boundary (monotonic time), checking
       stop_fn() every STOP_CHECK_INTERVAL_SEC.
    2. Run one tick to completion.
    3. Repeat until stop_fn() returns True.

    Args:
        config: Complete node configuration.
        outputs: Attached sinks.
        stop_fn: Callable that returns True when loop should exit.
        request_fn: Async function used to send one HTTP request.
        metrics: Optional collector updated after every tick.

    Notes:
        - Ticks never overlap. When a tick overruns the interval, one tick
          fires right after it and any further missed boundaries are
          dropped, so a slow endpoint cannot build up a backlog.
        - Errors inside a tick never stop the loop.
    """
    interval = config.interval_sec
    next_tick: float = get_now_time() + interval

    logger.info("Started...")
    while not stop_fn():
        if not await _wait_until(next_tick, stop_fn):
            break

        try:
            await run_tick(config, outputs, request_fn, ideal_time_sec=next_tick, metrics=metrics)
        except Exception as e:  # noqa: BLE001
            logger.error(f"Unexpected error in tick: {e}", exc_info=True)

        next_tick += interval
        now = get_now_time()
        if next_tick < now:
            missed = int((now - next_tick) // interval)
            if missed:
                logger.debug(f"Tick overran the interval, dropping {missed} tick(s)")
            next_tick += missed * interval


async def run_node(
    inputs: NodeInputs,
    outputs: NodeOutputs,
    stop_fn: Callable[[], bool],
    request_fn: RequestFn,
    metrics: MetricsPort | None = None,
) -> RunConfig | None:
    """Run intake followed by the poll loop.

    Args:
        inputs: Configuration channels.
        outputs: Attached sinks.
        stop_fn: Callable that returns True when the node should exit.
        request_fn: Async function used to send one HTTP request.
        metrics: Optional collector updated after every tick.

    Returns:
        The configuration the loop ran with, or None if stopped during intake.
    """
    config = await collect_run_config(inputs, stop_fn)
    if config is None:
        return None

    await start_main_loop(
        config=config,
        outputs=outputs,
        stop_fn=stop_fn,
        request_fn=request_fn,
        metrics=metrics,
    )
    return config
