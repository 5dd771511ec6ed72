"""Channel port definitions (interfaces and DTOs)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

__all__ = ["Packet", "InputChannel", "OutputSink", "NodeInputs", "NodeOutputs"]


@dataclass(slots=True, frozen=True)
class Packet:
    """Message envelope crossing a channel boundary.

    Attributes:
        payload: Opaque message body.
    """

    payload: bytes

    @property
    def is_valid(self) -> bool:
        """Return True if the packet carries a payload."""
        return len(self.payload) > 0

    @classmethod
    def from_text(cls, text: str) -> Packet:
        """Build a packet from UTF-8 text."""
        return cls(payload=text.encode("utf-8"))


class InputChannel(Protocol):
    """Inbound, unidirectional channel."""

    name: str

    async def receive(self) -> Packet:
        """Wait for and return the next packet."""
        ...


class OutputSink(Protocol):
    """Outbound, unidirectional channel.

    Sends are best-effort: delivery failures are handled by the sink and are
    never raised to the caller.
    """

    name: str

    async def send(self, packet: Packet, /) -> None:
        """Queue a packet, waiting for space if the sink is backed up."""
        ...

    def send_nowait(self, packet: Packet, /) -> bool:
        """Queue a packet without waiting.

        Returns:
            False if the packet was dropped.
        """
        ...


@dataclass(slots=True, frozen=True)
class NodeInputs:
    """The three configuration channels."""

    interval: InputChannel
    request: InputChannel
    template: InputChannel


@dataclass(slots=True, frozen=True)
class NodeOutputs:
    """Attached output sinks; None means the port is not wired."""

    property: OutputSink | None = None
    response: OutputSink | None = None
    body: OutputSink | None = None
    error: OutputSink | None = None
