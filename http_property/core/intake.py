"""Configuration intake: wait until interval, request and template are known."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

from http_property.core.duration import parse_duration
from http_property.core.errors import MalformedConfigurationMessage
from http_property.core.models import ExtractionTemplate, RequestDescriptor, RunConfig
from http_property.ports.channels import InputChannel, NodeInputs, Packet

__all__ = ["ConfigSlots", "collect_run_config"]

logger = logging.getLogger(__name__)

# How often a blocked intake re-checks the stop flag
STOP_CHECK_INTERVAL_SEC = 0.5


@dataclass
class ConfigSlots:
    """Last valid value received on each configuration channel."""

    interval_sec: float | None = None
    request: RequestDescriptor | None = None
    template: ExtractionTemplate | None = None

    def apply(self, slot: str, packet: Packet) -> None:
        """Decode a packet into its slot (last write wins).

        Args:
            slot: One of ``interval``, ``request``, ``template``.
            packet: Received packet.

        Raises:
            MalformedConfigurationMessage: If the payload cannot be decoded;
                the slot keeps its previous value.
        """
        if slot == "interval":
            try:
                text = packet.payload.decode("utf-8")
            except UnicodeDecodeError as e:
                raise MalformedConfigurationMessage(f"interval is not text: {e}") from e
            interval = parse_duration(text)
            if interval <= 0:
                raise MalformedConfigurationMessage(f"interval must be positive (got {text!r})")
            self.interval_sec = interval
            logger.info(f"Interval specified: {interval}s")
        elif slot == "request":
            self.request = RequestDescriptor.from_payload(packet.payload)
            logger.info(f"Request specified: {self.request.method} {self.request.url}")
        elif slot == "template":
            self.template = ExtractionTemplate.from_payload(packet.payload)
            logger.info(
                f"Template specified: id={self.template.id!r} name={self.template.name!r} "
                f"type={self.template.value_type.value}"
            )
        else:
            raise ValueError(f"unknown configuration slot {slot!r}")

    def snapshot(self) -> RunConfig | None:
        """Return a RunConfig once every slot holds a value."""
        if self.interval_sec is None or self.request is None or self.template is None:
            return None
        return RunConfig(interval_sec=self.interval_sec, request=self.request, template=self.template)


async def collect_run_config(
    inputs: NodeInputs,
    stop_fn: Callable[[], bool],
) -> RunConfig | None:
    """Wait on the three configuration channels until the config is complete.

    Channels are watched concurrently with one outstanding receive each.
    Malformed and invalid packets are logged and dropped.

    Args:
        inputs: Interval, request and template channels.
        stop_fn: Callable that returns True when intake should give up.

    Returns:
        The complete configuration, or None if stopped before completion.
    """
    channels: dict[str, InputChannel] = {
        "interval": inputs.interval,
        "request": inputs.request,
        "template": inputs.template,
    }
    slots = ConfigSlots()
    waiting: dict[asyncio.Task[Packet], str] = {}

    def arm(slot: str) -> None:
        task = asyncio.ensure_future(channels[slot].receive())
        waiting[task] = slot

    for slot in channels:
        arm(slot)

    try:
        while not stop_fn():
            done, _ = await asyncio.wait(
                waiting.keys(),
                timeout=STOP_CHECK_INTERVAL_SEC,
                return_when=asyncio.FIRST_COMPLETED,
            )
            # Stable order so simultaneous arrivals are applied deterministically
            for task in sorted(done, key=lambda t: list(channels).index(waiting[t])):
                slot = waiting.pop(task)
                arm(slot)
                try:
                    packet = task.result()
                except Exception as e:  # noqa: BLE001
                    logger.error(f"Error receiving message on {slot} channel: {e}")
                    continue
                if not packet.is_valid:
                    logger.warning(f"Invalid packet on {slot} channel: {packet!r}")
                    continue
                try:
                    slots.apply(slot, packet)
                except MalformedConfigurationMessage as e:
                    logger.error(f"Failed to decode {slot} message: {e}")

            config = slots.snapshot()
            if config is not None:
                logger.info("Component configured. Moving on...")
                return config

        logger.info("Stop requested before configuration was complete.")
        return None
    finally:
        for task in waiting:
            task.cancel()
        await asyncio.gather(*waiting, return_exceptions=True)
