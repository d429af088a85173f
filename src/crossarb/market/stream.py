"""
Resilient streaming client for venue market data.

One client owns one live WebSocket link and provides:
- Topic-keyed dispatch of pushed messages
- Heartbeat probes with round-trip measurement and stall detection
- Auto-reconnection with exponential backoff
- Replay of every registered subscription after a reconnect
"""

import asyncio
import itertools
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any

import orjson

from crossarb.config.constants import (
    MAX_RECONNECT_DELAY,
    MIN_RECONNECT_DELAY,
    RECONNECT_MULTIPLIER,
    WS_CLOSE_TIMEOUT,
    WS_DIAL_TIMEOUT,
    WS_PING_INTERVAL,
    WS_PONG_TIMEOUT,
)
from crossarb.market.transport import (
    Dialer,
    FrameKind,
    Transport,
    TransportError,
    aiohttp_dialer,
)
from crossarb.utils.time import elapsed_since, format_duration


logger = logging.getLogger(__name__)


# Type aliases
SubscriptionHandler = Callable[[Any], None]


class StreamError(Exception):
    """Base exception for stream client errors."""


class StreamConnectError(StreamError):
    """Raised when the link cannot be established."""


class StreamSendError(StreamError):
    """Raised when a request cannot be written to the link."""


class ConnectionState(Enum):
    """WebSocket connection state."""

    DISCONNECTED = auto()
    CONNECTING = auto()
    CONNECTED = auto()
    RECONNECTING = auto()
    CLOSED = auto()


@dataclass(slots=True, frozen=True)
class Subscription:
    """Registered topic and its handler."""

    topic: str
    handler: SubscriptionHandler


@dataclass(slots=True)
class ConnectionStats:
    """Link health, timestamps are time.monotonic() seconds."""

    connected: bool = False
    reconnect_count: int = 0
    last_message_at: float = 0.0
    last_pong_at: float = 0.0
    round_trip_time: float | None = None


@dataclass
class ExponentialBackoff:
    """Reconnect delay that doubles on failure up to a ceiling."""

    floor: float = MIN_RECONNECT_DELAY
    ceiling: float = MAX_RECONNECT_DELAY
    multiplier: float = RECONNECT_MULTIPLIER
    current: float = field(init=False)

    def __post_init__(self) -> None:
        self.current = self.floor

    def escalate(self) -> float:
        """Grow the delay after a failed attempt."""
        self.current = min(self.current * self.multiplier, self.ceiling)
        return self.current

    def reset(self) -> None:
        """Return to the floor after a fully successful reconnect."""
        self.current = self.floor


class _Link:
    """One dialed transport and the tasks serving it."""

    __slots__ = ("transport", "failed")

    def __init__(self, transport: Transport) -> None:
        self.transport = transport
        self.failed = False


class StreamClient:
    """
    Self-healing WebSocket client with topic subscriptions.

    Subclasses adapt the wire protocol of a venue by overriding
    `_subscribe_message`, `_send_probe` and `_heartbeat_ack`. The default
    heartbeat uses control ping frames carrying the probe sequence.
    """

    venue_name = "WS"

    def __init__(
        self,
        url: str,
        *,
        dialer: Dialer | None = None,
        ping_interval: float = WS_PING_INTERVAL,
        pong_timeout: float = WS_PONG_TIMEOUT,
        dial_timeout: float = WS_DIAL_TIMEOUT,
        backoff: ExponentialBackoff | None = None,
    ) -> None:
        """
        Initialize the stream client.

        Args:
            url: WebSocket URL.
            dialer: Transport factory, defaults to aiohttp.
            ping_interval: Seconds between heartbeat probes.
            pong_timeout: Extra grace before a silent link is considered stale.
            dial_timeout: Handshake timeout in seconds.
            backoff: Reconnect delay policy.
        """
        self._url = url
        self._dialer = dialer or aiohttp_dialer
        self._ping_interval = ping_interval
        self._pong_timeout = pong_timeout
        self._dial_timeout = dial_timeout
        self._backoff = backoff or ExponentialBackoff()
        self._log_prefix = f"[{self.venue_name} WS]"

        self._state = ConnectionState.DISCONNECTED
        self._stats = ConnectionStats()
        self._link: _Link | None = None

        # Copy-on-write: readers take the current tuple, writers swap it under the lock
        self._subscriptions: tuple[Subscription, ...] = ()
        self._subs_lock = threading.Lock()

        self._ping_seq = itertools.count(1)
        self._pending_pings: dict[str, float] = {}

        self._write_lock = asyncio.Lock()
        self._done = asyncio.Event()
        self._reconnect_requested = asyncio.Event()
        self._supervisor: asyncio.Task[None] | None = None
        self._tasks: set[asyncio.Task[None]] = set()

    # =========================================================================
    # Public API
    # =========================================================================

    async def connect(self) -> None:
        """
        Establish the first connection and start background recovery.

        Raises:
            StreamConnectError: If the first dial fails.
        """
        if self._done.is_set():
            raise StreamConnectError(f"{self._log_prefix} Client is closed")

        await self._dial()

        if self._supervisor is None:
            self._supervisor = self._spawn(self._reconnect_loop(), "reconnect")

    async def subscribe(self, topic: str, handler: SubscriptionHandler) -> None:
        """
        Register a topic and request it from the venue.

        The registration survives a failed request and is replayed
        after every reconnect.

        Raises:
            StreamSendError: If the subscribe request cannot be sent now.
        """
        with self._subs_lock:
            self._subscriptions = (*self._subscriptions, Subscription(topic, handler))

        await self._send_subscribe(topic)
        logger.info(f"{self._log_prefix} Subscribed: {topic}")

    def is_ready(self) -> bool:
        """Check whether the link is currently up."""
        return self._stats.connected

    async def close(self) -> None:
        """Stop all background activity and close the socket. Idempotent."""
        if self._done.is_set():
            return

        self._done.set()
        self._reconnect_requested.set()
        self._state = ConnectionState.CLOSED
        self._stats.connected = False

        if self._link is not None:
            await self._close_transport(self._link.transport)

        pending = [t for t in self._tasks if not t.done()]
        if pending:
            _, stragglers = await asyncio.wait(pending, timeout=WS_CLOSE_TIMEOUT)
            for task in stragglers:
                logger.warning(f"{self._log_prefix} Task {task.get_name()} did not exit, cancelling")
                task.cancel()

        logger.info(f"{self._log_prefix} Closed")

    @property
    def state(self) -> ConnectionState:
        """Get current connection state."""
        return self._state

    @property
    def stats(self) -> ConnectionStats:
        """Get link health counters."""
        return self._stats

    @property
    def subscriptions(self) -> tuple[Subscription, ...]:
        """Get registered subscriptions in registration order."""
        return self._subscriptions

    @property
    def backoff_delay(self) -> float:
        """Get the delay applied before the next reconnect attempt."""
        return self._backoff.current

    @property
    def pending_ping_count(self) -> int:
        """Get number of probes awaiting an ack."""
        return len(self._pending_pings)

    # =========================================================================
    # Venue Protocol Hooks
    # =========================================================================

    def _subscribe_message(self, topic: str) -> dict[str, Any]:
        """Build the subscribe request for a topic."""
        return {"op": "subscribe", "args": [topic]}

    async def _send_probe(self, transport: Transport, seq: str) -> None:
        """Send a liveness probe carrying `seq`."""
        await transport.ping(seq.encode())

    def _heartbeat_ack(self, message: dict[str, Any]) -> str | None:
        """
        Recognize an application-level heartbeat ack.

        Returns:
            The acknowledged sequence ("" if it carries none), or None
            if the message is not an ack.
        """
        return None

    # =========================================================================
    # Connection Lifecycle
    # =========================================================================

    def _spawn(self, coro: Any, label: str) -> asyncio.Task[None]:
        task = asyncio.create_task(coro, name=f"{self.venue_name}-{label}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _dial(self) -> None:
        """Dial the venue and start the read and heartbeat tasks."""
        self._state = ConnectionState.CONNECTING
        logger.info(f"{self._log_prefix} Connecting to {self._url}")

        try:
            transport = await self._dialer(self._url, self._dial_timeout)
        except TransportError as e:
            self._state = ConnectionState.DISCONNECTED
            raise StreamConnectError(f"{self._log_prefix} Connection failed: {e}") from e

        if self._done.is_set():
            await self._close_transport(transport)
            raise StreamConnectError(f"{self._log_prefix} Closed while connecting")

        self._pending_pings.clear()
        self._stats.last_pong_at = time.monotonic()

        link = _Link(transport)
        self._link = link
        self._stats.connected = True
        self._state = ConnectionState.CONNECTED

        self._spawn(self._read_loop(link), "read")
        self._spawn(self._heartbeat_loop(link), "heartbeat")
        logger.info(f"{self._log_prefix} Connected successfully")

    async def _reconnect_loop(self) -> None:
        """Wait for failure signals and redial with exponential backoff."""
        while True:
            await self._reconnect_requested.wait()
            self._reconnect_requested.clear()
            if self._done.is_set():
                return

            self._state = ConnectionState.RECONNECTING
            self._stats.connected = False
            self._stats.reconnect_count += 1
            delay = self._backoff.current
            logger.warning(
                f"{self._log_prefix} Link lost, reconnect #{self._stats.reconnect_count} "
                f"in {delay:.1f}s"
            )

            if await self._wait_closed(delay):
                return

            if self._link is not None:
                await self._close_transport(self._link.transport)

            try:
                await self._dial()
            except StreamConnectError as e:
                logger.error(f"{self._log_prefix} Reconnect failed: {e}")
                self._backoff.escalate()
                self._reconnect_requested.set()
                continue

            if await self._resubscribe_all():
                self._backoff.reset()
            else:
                # Venue accepts connections but rejects subscriptions
                self._backoff.escalate()

    async def _resubscribe_all(self) -> bool:
        """
        Replay every registration in order.

        Returns:
            True if every subscribe request was sent.
        """
        complete = True
        for sub in self._subscriptions:
            try:
                await self._send_subscribe(sub.topic)
            except StreamSendError as e:
                logger.error(f"{self._log_prefix} Resubscribe {sub.topic} failed: {e}")
                complete = False
            else:
                logger.info(f"{self._log_prefix} Resubscribed: {sub.topic}")
        return complete

    def _link_failed(self, link: _Link) -> None:
        """Signal the supervisor once per failed link."""
        if link.failed or self._done.is_set():
            return
        link.failed = True
        if link is not self._link:
            return

        self._stats.connected = False
        self._state = ConnectionState.DISCONNECTED
        self._reconnect_requested.set()

    async def _wait_closed(self, timeout: float) -> bool:
        """Sleep up to `timeout`, returning True early if the client closes."""
        try:
            await asyncio.wait_for(self._done.wait(), timeout=timeout)
        except TimeoutError:
            return False
        return True

    async def _close_transport(self, transport: Transport) -> None:
        try:
            await transport.close()
        except (TransportError, OSError) as e:
            logger.debug(f"{self._log_prefix} Error closing transport: {e}")

    # =========================================================================
    # Background Tasks
    # =========================================================================

    async def _read_loop(self, link: _Link) -> None:
        """Receive frames until the link fails or the client closes."""
        try:
            while not self._done.is_set():
                frame = await link.transport.receive()
                self._stats.last_message_at = time.monotonic()

                if frame.kind is FrameKind.MESSAGE:
                    self._handle_message(frame.data)
                elif frame.kind is FrameKind.PONG:
                    data = frame.data
                    self._on_heartbeat_ack(data.decode() if isinstance(data, bytes) else data)

        except TransportError as e:
            if not self._done.is_set():
                logger.warning(f"{self._log_prefix} Read error (will reconnect): {e}")
        except Exception as e:
            logger.error(f"{self._log_prefix} Error in message loop: {e!r}")
        finally:
            self._link_failed(link)

    async def _heartbeat_loop(self, link: _Link) -> None:
        """Probe the link periodically and force-close it when acks stop."""
        try:
            while not await self._wait_closed(self._ping_interval):
                if link.failed or link.transport.closed:
                    return

                silence = elapsed_since(self._stats.last_pong_at)
                if silence > self._ping_interval + self._pong_timeout:
                    logger.warning(
                        f"{self._log_prefix} No heartbeat ack for {format_duration(silence)}, "
                        f"closing stale link"
                    )
                    self._link_failed(link)
                    await self._close_transport(link.transport)
                    return

                seq = str(next(self._ping_seq))
                self._pending_pings[seq] = time.monotonic()
                try:
                    async with self._write_lock:
                        await self._send_probe(link.transport, seq)
                except TransportError as e:
                    self._pending_pings.pop(seq, None)
                    logger.warning(f"{self._log_prefix} Heartbeat send failed: {e}")
                    return
        finally:
            self._link_failed(link)

    # =========================================================================
    # Message Handling
    # =========================================================================

    def _handle_message(self, data: bytes | str) -> None:
        """Decode an application frame and route it."""
        try:
            message = orjson.loads(data)
        except orjson.JSONDecodeError as e:
            logger.debug(f"{self._log_prefix} Dropping invalid JSON: {e}")
            return

        if not isinstance(message, dict):
            return

        seq = self._heartbeat_ack(message)
        if seq is not None:
            self._on_heartbeat_ack(seq)
            return

        topic = message.get("topic")
        if not topic or not isinstance(topic, str):
            return

        self._dispatch(topic, message.get("data"))

    def _dispatch(self, topic: str, payload: Any) -> None:
        """Deliver a payload to the first registration for its topic."""
        for sub in self._subscriptions:
            if sub.topic == topic:
                try:
                    sub.handler(payload)
                except Exception as e:
                    logger.error(f"{self._log_prefix} Handler error on {topic}: {e!r}")
                return

    def _on_heartbeat_ack(self, seq: str) -> None:
        """Record liveness and, for a known probe, the round-trip time."""
        now = time.monotonic()
        self._stats.last_pong_at = now

        sent_at = self._pending_pings.pop(seq, None)
        if sent_at is None:
            logger.debug(f"{self._log_prefix} Ignoring ack for unknown probe {seq!r}")
            return

        self._stats.round_trip_time = now - sent_at
        logger.debug(f"{self._log_prefix} Heartbeat RTT {format_duration(now - sent_at)}")

    async def _send_subscribe(self, topic: str) -> None:
        link = self._link
        if link is None or link.failed or link.transport.closed:
            raise StreamSendError(f"{self._log_prefix} Not connected, cannot subscribe {topic}")

        message = orjson.dumps(self._subscribe_message(topic)).decode()
        try:
            async with self._write_lock:
                await link.transport.send(message)
        except TransportError as e:
            raise StreamSendError(f"{self._log_prefix} Subscribe {topic} failed: {e}") from e

    async def __aenter__(self) -> "StreamClient":
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, *args: object) -> None:
        """Async context manager exit."""
        await self.close()
