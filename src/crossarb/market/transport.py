"""
Full-duplex message transport for market data streams.

Wraps an aiohttp WebSocket with automatic ping handling disabled so the
stream client sees control frames and can measure heartbeat round trips.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum, auto
from typing import Protocol

import aiohttp
import orjson

from crossarb.config.constants import WS_DIAL_TIMEOUT, WS_MAX_MESSAGE_SIZE


class TransportError(Exception):
    """Raised when a transport operation fails."""


class TransportClosed(TransportError):
    """Raised when the peer or the local side closed the transport."""


class FrameKind(Enum):
    """Kind of an inbound frame."""

    MESSAGE = auto()  # application data (text or binary)
    PING = auto()  # control ping from the peer
    PONG = auto()  # control pong answering one of our pings


@dataclass(slots=True, frozen=True)
class Frame:
    """Single inbound frame."""

    kind: FrameKind
    data: bytes | str = b""


class Transport(Protocol):
    """Bidirectional frame channel."""

    @property
    def closed(self) -> bool:
        """True once the channel can no longer carry frames."""
        ...

    async def send(self, data: str) -> None:
        """Send an application text frame."""
        ...

    async def receive(self) -> Frame:
        """Wait for the next frame; raises TransportClosed at end of stream."""
        ...

    async def ping(self, payload: bytes) -> None:
        """Send a control ping frame."""
        ...

    async def close(self) -> None:
        """Close the channel; safe to call more than once."""
        ...


Dialer = Callable[[str, float], Awaitable[Transport]]


class AiohttpTransport:
    """
    Transport backed by an aiohttp client WebSocket.

    Owns its ClientSession so that closing the transport releases
    the underlying connector as well.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        ws: aiohttp.ClientWebSocketResponse,
    ) -> None:
        self._session = session
        self._ws = ws

    @classmethod
    async def connect(cls, url: str, timeout: float = WS_DIAL_TIMEOUT) -> "AiohttpTransport":
        """
        Dial a WebSocket endpoint.

        Args:
            url: WebSocket URL.
            timeout: Handshake timeout in seconds.

        Returns:
            Connected transport.

        Raises:
            TransportError: If the handshake fails or times out.
        """
        session = aiohttp.ClientSession(json_serialize=lambda x: orjson.dumps(x).decode())
        try:
            ws = await asyncio.wait_for(
                session.ws_connect(
                    url,
                    autoping=False,
                    heartbeat=None,
                    max_msg_size=WS_MAX_MESSAGE_SIZE,
                ),
                timeout=timeout,
            )
        except (aiohttp.ClientError, OSError, TimeoutError) as e:
            await session.close()
            raise TransportError(f"Dial {url} failed: {e!r}") from e

        return cls(session, ws)

    @property
    def closed(self) -> bool:
        """Check whether the socket is closed."""
        return self._ws.closed

    async def send(self, data: str) -> None:
        """Send a text frame."""
        try:
            await self._ws.send_str(data)
        except (aiohttp.ClientError, OSError, RuntimeError) as e:
            raise TransportError(f"Send failed: {e!r}") from e

    async def ping(self, payload: bytes) -> None:
        """Send a control ping."""
        try:
            await self._ws.ping(payload)
        except (aiohttp.ClientError, OSError, RuntimeError) as e:
            raise TransportError(f"Ping failed: {e!r}") from e

    async def receive(self) -> Frame:
        """
        Receive the next frame.

        Pings from the peer are answered here before being surfaced,
        since autoping is disabled.
        """
        msg = await self._ws.receive()

        if msg.type == aiohttp.WSMsgType.TEXT or msg.type == aiohttp.WSMsgType.BINARY:
            return Frame(FrameKind.MESSAGE, msg.data)

        if msg.type == aiohttp.WSMsgType.PING:
            try:
                await self._ws.pong(msg.data)
            except (aiohttp.ClientError, OSError, RuntimeError) as e:
                raise TransportError(f"Pong failed: {e!r}") from e
            return Frame(FrameKind.PING, msg.data)

        if msg.type == aiohttp.WSMsgType.PONG:
            return Frame(FrameKind.PONG, msg.data)

        if msg.type == aiohttp.WSMsgType.ERROR:
            raise TransportError(f"Socket error: {self._ws.exception()!r}")

        # CLOSE, CLOSING, CLOSED
        raise TransportClosed(f"Socket closed (code={self._ws.close_code})")

    async def close(self) -> None:
        """Close the socket and its session."""
        try:
            if not self._ws.closed:
                await self._ws.close()
        finally:
            if not self._session.closed:
                await self._session.close()


async def aiohttp_dialer(url: str, timeout: float) -> Transport:
    """Default dialer used by stream clients."""
    return await AiohttpTransport.connect(url, timeout)
