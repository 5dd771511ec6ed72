"""Shared fixtures: in-memory channels and throwaway HTTP servers."""

import asyncio
import json
import socket
import ssl
from collections.abc import AsyncIterator, Awaitable, Callable

import pytest
import pytest_asyncio
from aiohttp import web

from http_property.ports.channels import NodeInputs, NodeOutputs, Packet


class MemoryChannel:
    """Input channel fed directly by the test."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.queue: asyncio.Queue[Packet] = asyncio.Queue()

    async def receive(self) -> Packet:
        return await self.queue.get()

    def put(self, payload: bytes | str | dict) -> None:
        if isinstance(payload, dict):
            payload = json.dumps(payload)
        if isinstance(payload, str):
            payload = payload.encode()
        self.queue.put_nowait(Packet(payload=payload))


class MemorySink:
    """Output sink recording everything it is given."""

    def __init__(self, name: str, capacity: int | None = None) -> None:
        self.name = name
        self.capacity = capacity
        self.packets: list[Packet] = []
        self.dropped = 0

    async def send(self, packet: Packet) -> None:
        self.packets.append(packet)

    def send_nowait(self, packet: Packet) -> bool:
        if self.capacity is not None and len(self.packets) >= self.capacity:
            self.dropped += 1
            return False
        self.packets.append(packet)
        return True

    def json(self) -> list[dict]:
        return [json.loads(p.payload) for p in self.packets]

    def texts(self) -> list[str]:
        return [p.payload.decode() for p in self.packets]


@pytest.fixture
def channels() -> dict[str, MemoryChannel]:
    return {name: MemoryChannel(name) for name in ("interval", "request", "template")}


@pytest.fixture
def inputs(channels: dict[str, MemoryChannel]) -> NodeInputs:
    return NodeInputs(
        interval=channels["interval"],
        request=channels["request"],
        template=channels["template"],
    )


@pytest.fixture
def sinks() -> dict[str, MemorySink]:
    return {name: MemorySink(name) for name in ("property", "response", "body", "error")}


@pytest.fixture
def outputs(sinks: dict[str, MemorySink]) -> NodeOutputs:
    return NodeOutputs(
        property=sinks["property"],
        response=sinks["response"],
        body=sinks["body"],
        error=sinks["error"],
    )


@pytest.fixture
def full_sink() -> MemorySink:
    """Sink that drops every non-blocking send."""
    return MemorySink("error", capacity=0)


@pytest.fixture
def unused_port() -> int:
    """Return a local TCP port nothing is listening on."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest_asyncio.fixture
async def serve_app() -> AsyncIterator[Callable[..., Awaitable[str]]]:
    """Start aiohttp applications on ephemeral ports.

    Yields:
        Coroutine function taking an application and returning its base URL.
    """
    runners: list[web.AppRunner] = []

    async def _serve(app: web.Application, ssl_context: ssl.SSLContext | None = None) -> str:
        runner = web.AppRunner(app)
        await runner.setup()
        site = web.TCPSite(runner, "127.0.0.1", 0, ssl_context=ssl_context)
        await site.start()
        runners.append(runner)
        host, port = runner.addresses[0][:2]
        scheme = "http" if ssl_context is None else "https"
        return f"{scheme}://{host}:{port}"

    yield _serve

    for runner in runners:
        await runner.cleanup()
