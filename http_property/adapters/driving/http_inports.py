"""Inbound channels served as HTTP endpoints.

Each channel address is ``http://host:port/path``. Channels sharing a host
and port are served by one listener; every POST to a channel's path
delivers its body as one packet.
"""

import asyncio
import logging
from types import TracebackType

from aiohttp import web
from yarl import URL

from http_property.core.errors import StartupConfigurationError
from http_property.ports.channels import InputChannel, NodeInputs, Packet

__all__ = ["HttpInputChannel", "HttpInputServer"]

logger = logging.getLogger(__name__)

QUEUE_SIZE = 16


class HttpInputChannel(InputChannel):
    """Inbound channel fed by an HTTP route."""

    def __init__(self, name: str, *, queue_size: int = QUEUE_SIZE) -> None:
        self.name = name
        self._queue: asyncio.Queue[Packet] = asyncio.Queue(maxsize=queue_size)

    async def receive(self) -> Packet:
        return await self._queue.get()

    async def handle(self, request: web.Request) -> web.Response:
        """Accept one packet from an upstream node."""
        payload = await request.read()
        try:
            self._queue.put_nowait(Packet(payload=payload))
        except asyncio.QueueFull:
            logger.warning(f"Input port {self.name} is full, rejecting packet")
            return web.Response(status=503, text="input queue full")
        return web.Response(status=202)


class HttpInputServer:
    """Serves the node's input channels for the duration of the context."""

    def __init__(self, endpoints: dict[str, str]) -> None:
        """Initialize the server set.

        Args:
            endpoints: Channel name (interval, request, template) to address.
        """
        self.endpoints = endpoints
        self.channels: dict[str, HttpInputChannel] = {name: HttpInputChannel(name) for name in endpoints}
        self._runners: list[web.AppRunner] = []

    def _group_by_listener(self) -> dict[tuple[str, int], list[tuple[str, str]]]:
        groups: dict[tuple[str, int], list[tuple[str, str]]] = {}
        for name, address in self.endpoints.items():
            url = URL(address)
            if url.host is None or url.port is None:
                raise StartupConfigurationError(f"Invalid address for input port {name}: {address}")
            groups.setdefault((url.host, url.port), []).append((name, url.path or "/"))
        return groups

    async def __aenter__(self) -> "HttpInputServer":
        """Bind every listener.

        Raises:
            StartupConfigurationError: If an address is invalid or cannot be bound.
        """
        try:
            for (host, port), routes in self._group_by_listener().items():
                app = web.Application()
                for name, path in routes:
                    app.router.add_post(path, self.channels[name].handle)
                runner = web.AppRunner(app, access_log=None)
                await runner.setup()
                self._runners.append(runner)
                site = web.TCPSite(runner, host, port)
                await site.start()
                logger.info(f"Input ports {[name for name, _ in routes]} listening on {host}:{port}")
        except (OSError, ValueError, RuntimeError) as e:
            await self._cleanup()
            raise StartupConfigurationError(f"Cannot bind input ports: {e}") from e
        except StartupConfigurationError:
            await self._cleanup()
            raise
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self._cleanup()

    async def _cleanup(self) -> None:
        for runner in self._runners:
            await runner.cleanup()
        self._runners.clear()

    @property
    def bound_ports(self) -> list[int]:
        """TCP ports actually bound (useful when an address asks for port 0)."""
        return [address[1] for runner in self._runners for address in runner.addresses]

    def as_inputs(self) -> NodeInputs:
        """Return the channels wired into the node's input slots."""
        return NodeInputs(
            interval=self.channels["interval"],
            request=self.channels["request"],
            template=self.channels["template"],
        )
