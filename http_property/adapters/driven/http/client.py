"""HTTP client adapter used to poll the configured endpoint."""

import asyncio
import logging
from types import TracebackType

import aiohttp
from aiohttp import ClientTimeout
from multidict import CIMultiDict

from http_property.core.errors import ResponseConversionError, TransportError
from http_property.ports.http import HttpPort, ResponseView

__all__ = ["HttpClient"]

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30


class HttpClient:
    """HTTP client shared by every tick of the node.

    Features:
    - One session (and connection pool) for the node's lifetime.
    - Fixed total timeout per request.
    - Optional peer certificate verification.
    """

    def __init__(
        self,
        *,
        tls_insecure_skip_verify: bool = True,
        timeout: float = REQUEST_TIMEOUT,
    ) -> None:
        """Initialize HTTP client.

        Args:
            tls_insecure_skip_verify: Skip peer certificate verification.
                Enabled by default because polled endpoints commonly sit
                behind custom or self-signed certificate authorities.
            timeout: Total timeout per request in seconds.
        """
        self.tls_insecure_skip_verify = tls_insecure_skip_verify
        self.timeout = timeout
        self.session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> "HttpClient":
        """Enter async context manager (start session).

        Returns:
            Self for use in async with statement.
        """
        if self.tls_insecure_skip_verify:
            logger.warning("TLS peer verification is disabled for polled endpoints")
        connector = aiohttp.TCPConnector(ssl=not self.tls_insecure_skip_verify)
        self.session = aiohttp.ClientSession(
            connector=connector,
            timeout=ClientTimeout(total=self.timeout),
        )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        """Exit async context manager (close session)."""
        if self.session:
            await self.session.close()
            self.session = None

    async def request(self, req: HttpPort) -> ResponseView:
        """Perform one HTTP request and read the whole response.

        Args:
            req: HTTP request object.

        Returns:
            The response, fully read.

        Raises:
            RuntimeError: If session not initialized.
            TransportError: On connection, TLS or timeout failures.
            ResponseConversionError: If the body cannot be read.
        """
        if self.session is None:
            raise RuntimeError("Session not initialized; use 'async with' context manager")

        try:
            async with self.session.request(req.method, req.url, headers=CIMultiDict(req.headers)) as resp:
                try:
                    body = await resp.read()
                except (aiohttp.ClientPayloadError, asyncio.TimeoutError) as e:
                    raise ResponseConversionError(f"failed to read response body: {e!r}") from e
                headers: dict[str, list[str]] = {}
                for name, value in resp.headers.items():
                    headers.setdefault(name, []).append(value)
                return ResponseView(
                    status=resp.status,
                    reason=resp.reason or "",
                    headers=headers,
                    body=body,
                )
        except asyncio.TimeoutError as e:
            raise TransportError(f"request timed out after {self.timeout}s") from e
        except aiohttp.ClientError as e:
            raise TransportError(str(e) or repr(e)) from e
        except ValueError as e:
            raise TransportError(f"invalid request: {e}") from e
