"""
Venue-specific order book streams.

Apex (home venue) probes liveness with control ping frames and publishes
books on ``orderbook.<SYMBOL>``. Bybit (hedge venue) uses JSON
``{"op": "ping"}`` requests and publishes on ``orderbook.1.<SYMBOL>``.
"""

import logging
from collections.abc import Callable
from typing import Annotated, Any, ClassVar

import orjson
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from crossarb.config.constants import APEX_WS_URL, BYBIT_WS_URL
from crossarb.core.types import MarketQuote
from crossarb.market.stream import StreamClient
from crossarb.market.transport import Transport


logger = logging.getLogger(__name__)


QuoteCallback = Callable[[MarketQuote], None]

# [price, size, ...]; venues send numbers as strings
PriceLevel = Annotated[list[float], Field(min_length=2)]


# =============================================================================
# Payload Models
# =============================================================================


class OrderBookPayload(BaseModel):
    """Top-of-book payload common to both venues."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    bids: list[PriceLevel] = Field(default_factory=list)
    asks: list[PriceLevel] = Field(default_factory=list)

    def to_quote(self) -> MarketQuote | None:
        """Best bid/ask, or None if either side is empty."""
        if not self.bids or not self.asks:
            return None

        best_bid, best_ask = self.bids[0], self.asks[0]
        return MarketQuote(
            bid_price=best_bid[0],
            bid_size=best_bid[1],
            ask_price=best_ask[0],
            ask_size=best_ask[1],
        )


class ApexOrderBook(OrderBookPayload):
    """Apex order book push: ``{symbol, bids, asks}``."""

    symbol: str = ""


class BybitOrderBook(OrderBookPayload):
    """Bybit order book push: ``{s, b, a}``."""

    symbol: str = Field(default="", alias="s")
    bids: list[PriceLevel] = Field(default_factory=list, alias="b")
    asks: list[PriceLevel] = Field(default_factory=list, alias="a")


# =============================================================================
# Stream Clients
# =============================================================================


class OrderBookStreamClient(StreamClient):
    """Stream client that decodes order book pushes into quotes."""

    topic_prefix: ClassVar[str] = "orderbook"
    book_model: ClassVar[type[OrderBookPayload]] = OrderBookPayload

    @classmethod
    def order_book_topic(cls, symbol: str) -> str:
        """Topic carrying the order book of `symbol`."""
        return f"{cls.topic_prefix}.{symbol}"

    async def subscribe_order_book(self, symbol: str, callback: QuoteCallback) -> None:
        """
        Subscribe to top-of-book updates for a symbol.

        Args:
            symbol: Venue symbol, e.g. "BTC-USDC" or "BTCUSDT".
            callback: Called with each decoded quote.

        Raises:
            StreamSendError: If the request cannot be sent now.
        """
        topic = self.order_book_topic(symbol)
        model = self.book_model

        def on_book(payload: Any) -> None:
            try:
                book = model.model_validate(payload)
            except ValidationError as e:
                logger.warning(
                    f"{self._log_prefix} Malformed order book on {topic}: "
                    f"{e.error_count()} error(s)"
                )
                return

            quote = book.to_quote()
            if quote is not None:
                callback(quote)

        await self.subscribe(topic, on_book)


class ApexStreamClient(OrderBookStreamClient):
    """Apex Pro public stream (control-frame heartbeat)."""

    venue_name = "Apex"
    topic_prefix = "orderbook"
    book_model = ApexOrderBook

    def __init__(self, url: str = APEX_WS_URL, **kwargs: Any) -> None:
        super().__init__(url, **kwargs)


class BybitStreamClient(OrderBookStreamClient):
    """Bybit V5 public linear stream (JSON heartbeat)."""

    venue_name = "Bybit"
    topic_prefix = "orderbook.1"
    book_model = BybitOrderBook

    def __init__(self, url: str = BYBIT_WS_URL, **kwargs: Any) -> None:
        super().__init__(url, **kwargs)

    async def _send_probe(self, transport: Transport, seq: str) -> None:
        await transport.send(orjson.dumps({"op": "ping", "req_id": seq}).decode())

    def _heartbeat_ack(self, message: dict[str, Any]) -> str | None:
        # Public streams echo op=ping with ret_msg=pong, private ones reply op=pong
        if message.get("op") not in ("ping", "pong"):
            return None
        req_id = message.get("req_id")
        return "" if req_id is None else str(req_id)
