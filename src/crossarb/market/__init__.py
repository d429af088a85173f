"""Market data streaming: transports, resilient stream clients and venue feeds."""

from crossarb.market.quotes import QuoteCell
from crossarb.market.stream import (
    ConnectionState,
    ConnectionStats,
    ExponentialBackoff,
    StreamClient,
    StreamConnectError,
    StreamError,
    StreamSendError,
)
from crossarb.market.transport import (
    AiohttpTransport,
    Frame,
    FrameKind,
    Transport,
    TransportClosed,
    TransportError,
)
from crossarb.market.venues import (
    ApexOrderBook,
    ApexStreamClient,
    BybitOrderBook,
    BybitStreamClient,
    OrderBookStreamClient,
)


__all__ = [
    "AiohttpTransport",
    "ApexOrderBook",
    "ApexStreamClient",
    "BybitOrderBook",
    "BybitStreamClient",
    "ConnectionState",
    "ConnectionStats",
    "ExponentialBackoff",
    "Frame",
    "FrameKind",
    "OrderBookStreamClient",
    "QuoteCell",
    "StreamClient",
    "StreamConnectError",
    "StreamError",
    "StreamSendError",
    "Transport",
    "TransportClosed",
    "TransportError",
]
