"""
Mock WebSocket transport for testing.

Provides a controllable in-memory transport and dialer so that stream
clients can be exercised without network connections.
"""

import asyncio
import time
from collections.abc import Callable
from typing import Any

import orjson

from crossarb.market.transport import Frame, FrameKind, TransportClosed, TransportError


class MockTransport:
    """
    In-memory transport.

    Frames are injected with the push_* helpers and consumed by the
    client's read task. Everything the client writes is recorded.
    """

    def __init__(
        self,
        *,
        auto_pong: bool = True,
        fail_send: bool = False,
        fail_ping: bool = False,
    ) -> None:
        """
        Initialize mock transport.

        Args:
            auto_pong: Answer each control ping with a pong echoing its payload.
            fail_send: Make every send() raise.
            fail_ping: Make every ping() raise.
        """
        self.auto_pong = auto_pong
        self.fail_send = fail_send
        self.fail_ping = fail_ping
        self.sent: list[str] = []
        self.pings: list[bytes] = []
        self.close_calls = 0
        self._closed = False
        self._inbox: asyncio.Queue[Frame | TransportError] = asyncio.Queue()

    @property
    def closed(self) -> bool:
        return self._closed

    async def send(self, data: str) -> None:
        if self._closed:
            raise TransportClosed("send on closed transport")
        if self.fail_send:
            raise TransportError("send refused")
        self.sent.append(data)

    async def ping(self, payload: bytes) -> None:
        if self._closed:
            raise TransportClosed("ping on closed transport")
        if self.fail_ping:
            raise TransportError("ping refused")
        self.pings.append(payload)
        if self.auto_pong:
            self._inbox.put_nowait(Frame(FrameKind.PONG, payload))

    async def receive(self) -> Frame:
        item = await self._inbox.get()
        if isinstance(item, TransportError):
            raise item
        return item

    async def close(self) -> None:
        self.close_calls += 1
        if self._closed:
            return
        self._closed = True
        self._inbox.put_nowait(TransportClosed("closed locally"))

    # =========================================================================
    # Test Helpers
    # =========================================================================

    def push_message(self, message: dict[str, Any]) -> None:
        """Inject an application message."""
        self._inbox.put_nowait(Frame(FrameKind.MESSAGE, orjson.dumps(message).decode()))

    def push_raw(self, data: str | bytes) -> None:
        """Inject an application frame with arbitrary content."""
        self._inbox.put_nowait(Frame(FrameKind.MESSAGE, data))

    def push_pong(self, payload: bytes) -> None:
        """Inject a control pong frame."""
        self._inbox.put_nowait(Frame(FrameKind.PONG, payload))

    def drop(self) -> None:
        """Simulate the peer resetting the connection."""
        self._closed = True
        self._inbox.put_nowait(TransportError("connection reset by peer"))

    @property
    def sent_json(self) -> list[dict[str, Any]]:
        """Decoded outbound messages."""
        return [orjson.loads(s) for s in self.sent]

    @property
    def subscribed_topics(self) -> list[str]:
        """Topics requested on this transport, in send order."""
        return [
            topic
            for msg in self.sent_json
            if msg.get("op") == "subscribe"
            for topic in msg.get("args", [])
        ]


class MockDialer:
    """
    Dialer that hands out MockTransports.

    Can be told to refuse the next N dial attempts.
    """

    def __init__(self, transport_factory: Callable[[], MockTransport] | None = None) -> None:
        self.transport_factory = transport_factory or MockTransport
        self.transports: list[MockTransport] = []
        self.attempts = 0
        self.urls: list[str] = []
        self._refuse = 0

    def refuse_next(self, count: int) -> None:
        """Fail the next `count` dial attempts."""
        self._refuse = count

    async def __call__(self, url: str, timeout: float) -> MockTransport:
        self.attempts += 1
        self.urls.append(url)
        if self._refuse > 0:
            self._refuse -= 1
            raise TransportError("connection refused")

        transport = self.transport_factory()
        self.transports.append(transport)
        return transport

    @property
    def last(self) -> MockTransport:
        """Most recently dialed transport."""
        return self.transports[-1]


async def wait_until(
    predicate: Callable[[], bool],
    timeout: float = 2.0,
    interval: float = 0.005,
) -> None:
    """
    Poll until `predicate` holds.

    Raises:
        AssertionError: If it does not hold within `timeout` seconds.
    """
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(interval)
