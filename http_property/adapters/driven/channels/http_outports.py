"""Outbound channels delivered as HTTP POSTs to downstream nodes."""

import asyncio
import contextlib
import logging
from types import TracebackType

import aiohttp
from aiohttp import ClientTimeout

from http_property.ports.channels import NodeOutputs, OutputSink, Packet

__all__ = ["HttpOutputPort", "HttpOutputPorts"]

logger = logging.getLogger(__name__)

QUEUE_SIZE = 100
DELIVERY_TIMEOUT = 10
FIRST_FAILING_HTTP_CODE = 400


class HttpOutputPort(OutputSink):
    """One outbound channel.

    Packets are queued and POSTed in order by a background task. A failed
    delivery is logged and the packet dropped; the poll loop never sees it.
    """

    def __init__(
        self,
        name: str,
        url: str,
        session: aiohttp.ClientSession,
        *,
        queue_size: int = QUEUE_SIZE,
    ) -> None:
        """Initialize the port.

        Args:
            name: Port name used in logs.
            url: Downstream address.
            session: Shared client session.
            queue_size: Packets buffered before send() waits.
        """
        self.name = name
        self.url = url
        self._session = session
        self._queue: asyncio.Queue[Packet] = asyncio.Queue(maxsize=queue_size)
        self._task: asyncio.Task[None] | None = None

    def start(self) -> None:
        """Start the delivery task."""
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._drain())

    async def send(self, packet: Packet) -> None:
        await self._queue.put(packet)

    def send_nowait(self, packet: Packet) -> bool:
        try:
            self._queue.put_nowait(packet)
        except asyncio.QueueFull:
            logger.debug(f"Output port {self.name} is full, packet dropped")
            return False
        return True

    async def _deliver(self, packet: Packet) -> None:
        try:
            async with self._session.post(
                self.url,
                data=packet.payload,
                headers={"Content-Type": "application/octet-stream"},
            ) as resp:
                if resp.status >= FIRST_FAILING_HTTP_CODE:
                    logger.warning(f"Output port {self.name} rejected packet: HTTP {resp.status}")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Output port {self.name} delivery to {self.url} failed: {e!r}")

    async def _drain(self) -> None:
        while True:
            packet = await self._queue.get()
            try:
                await self._deliver(packet)
            finally:
                self._queue.task_done()

    async def close(self, flush_timeout: float = 1.0) -> None:
        """Stop the delivery task, giving queued packets a short grace period.

        Args:
            flush_timeout: Seconds to wait for the queue to drain.
        """
        if self._task is None:
            return
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(self._queue.join(), timeout=flush_timeout)
        self._task.cancel()
        await asyncio.gather(self._task, return_exceptions=True)
        self._task = None


class HttpOutputPorts:
    """Owns the session and the output ports of the node.

    Only ports with a configured address are created.
    """

    def __init__(self, endpoints: dict[str, str | None]) -> None:
        """Initialize the port set.

        Args:
            endpoints: Port name (property, response, body, error) to address.
        """
        self.endpoints = endpoints
        self.session: aiohttp.ClientSession | None = None
        self.ports: dict[str, HttpOutputPort] = {}

    async def __aenter__(self) -> "HttpOutputPorts":
        self.session = aiohttp.ClientSession(timeout=ClientTimeout(total=DELIVERY_TIMEOUT))
        for name, url in self.endpoints.items():
            if url:
                port = HttpOutputPort(name, url, self.session)
                port.start()
                self.ports[name] = port
                logger.debug(f"Output port {name} -> {url}")
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        for port in self.ports.values():
            await port.close()
        self.ports.clear()
        if self.session:
            await self.session.close()
            self.session = None

    def as_outputs(self) -> NodeOutputs:
        """Return the ports wired into the node's output slots."""
        return NodeOutputs(
            property=self.ports.get("property"),
            response=self.ports.get("response"),
            body=self.ports.get("body"),
            error=self.ports.get("error"),
        )
