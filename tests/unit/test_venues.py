"""
Unit tests for the venue stream clients.

Tests topic naming, heartbeat wire formats and order book decoding.
"""

import logging

import pytest
import pytest_asyncio

from crossarb.core.types import MarketQuote
from crossarb.market.stream import ExponentialBackoff
from crossarb.market.venues import (
    ApexOrderBook,
    ApexStreamClient,
    BybitOrderBook,
    BybitStreamClient,
)
from tests.mocks import MockDialer, wait_until


class TestOrderBookModels:
    """Tests for payload decoding."""

    def test_apex_payload(self) -> None:
        """Test Apex field names and string numbers."""
        book = ApexOrderBook.model_validate(
            {
                "symbol": "BTC-USDC",
                "bids": [["100.5", "2"], ["100.4", "1"]],
                "asks": [["101", "1.5"]],
            }
        )

        assert book.symbol == "BTC-USDC"
        assert book.to_quote() == MarketQuote(
            bid_price=100.5, bid_size=2.0, ask_price=101.0, ask_size=1.5
        )

    def test_bybit_payload(self) -> None:
        """Test Bybit short field names."""
        book = BybitOrderBook.model_validate(
            {"s": "BTCUSDT", "b": [["99.5", "3"]], "a": [["99.6", "4"]], "u": 1}
        )

        assert book.symbol == "BTCUSDT"
        assert book.to_quote() == MarketQuote(
            bid_price=99.5, bid_size=3.0, ask_price=99.6, ask_size=4.0
        )

    def test_missing_side_yields_no_quote(self) -> None:
        """Test a one-sided book is ignored."""
        book = BybitOrderBook.model_validate({"s": "BTCUSDT", "b": [["99.5", "3"]], "a": []})

        assert book.to_quote() is None

    def test_short_level_rejected(self) -> None:
        """Test a level without size fails validation."""
        with pytest.raises(ValueError):
            ApexOrderBook.model_validate({"bids": [["100.5"]], "asks": [["101", "1"]]})


class TestTopics:
    """Tests for topic naming."""

    def test_apex_topic(self) -> None:
        assert ApexStreamClient.order_book_topic("BTC-USDC") == "orderbook.BTC-USDC"

    def test_bybit_topic(self) -> None:
        assert BybitStreamClient.order_book_topic("BTCUSDT") == "orderbook.1.BTCUSDT"


class TestApexStreamClient:
    """Tests for the Apex feed."""

    @pytest_asyncio.fixture
    async def client(self, dialer: MockDialer, fast_backoff: ExponentialBackoff):
        """Connected Apex client."""
        client = ApexStreamClient(dialer=dialer, ping_interval=60.0, backoff=fast_backoff)
        await client.connect()
        yield client
        await client.close()

    @pytest.mark.asyncio
    async def test_quote_delivery(self, client: ApexStreamClient, dialer: MockDialer) -> None:
        """Test an order book push reaches the callback as a quote."""
        quotes: list[MarketQuote] = []
        await client.subscribe_order_book("BTC-USDC", quotes.append)

        dialer.last.push_message(
            {
                "topic": "orderbook.BTC-USDC",
                "data": {"symbol": "BTC-USDC", "bids": [["100", "1"]], "asks": [["101", "2"]]},
            }
        )
        await wait_until(lambda: len(quotes) == 1)

        assert quotes[0].bid_price == 100.0
        assert quotes[0].ask_size == 2.0
        assert dialer.last.subscribed_topics == ["orderbook.BTC-USDC"]

    @pytest.mark.asyncio
    async def test_malformed_payload_dropped(
        self,
        client: ApexStreamClient,
        dialer: MockDialer,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Test a bad payload is logged and later pushes still arrive."""
        quotes: list[MarketQuote] = []
        await client.subscribe_order_book("BTC-USDC", quotes.append)
        transport = dialer.last

        with caplog.at_level(logging.WARNING):
            transport.push_message(
                {"topic": "orderbook.BTC-USDC", "data": {"bids": [["abc", "1"]], "asks": []}}
            )
            transport.push_message(
                {"topic": "orderbook.BTC-USDC", "data": {"bids": [["1", "1"]], "asks": [["2", "1"]]}}
            )
            await wait_until(lambda: len(quotes) == 1)

        assert "Malformed order book" in caplog.text

    @pytest.mark.asyncio
    async def test_one_sided_book_ignored(self, client: ApexStreamClient, dialer: MockDialer) -> None:
        """Test payloads missing a side do not reach the callback."""
        quotes: list[MarketQuote] = []
        await client.subscribe_order_book("BTC-USDC", quotes.append)
        transport = dialer.last

        transport.push_message({"topic": "orderbook.BTC-USDC", "data": {"bids": [["1", "1"]]}})
        transport.push_message(
            {"topic": "orderbook.BTC-USDC", "data": {"bids": [["3", "1"]], "asks": [["4", "1"]]}}
        )
        await wait_until(lambda: len(quotes) == 1)

        assert quotes[0].bid_price == 3.0


class TestBybitStreamClient:
    """Tests for the Bybit feed."""

    def test_heartbeat_ack_recognized(self) -> None:
        """Test both public and private pong shapes."""
        client = BybitStreamClient()

        assert client._heartbeat_ack({"op": "ping", "ret_msg": "pong", "req_id": "3"}) == "3"
        assert client._heartbeat_ack({"op": "pong", "req_id": 4}) == "4"
        assert client._heartbeat_ack({"op": "pong"}) == ""
        assert client._heartbeat_ack({"op": "subscribe", "success": True}) is None
        assert client._heartbeat_ack({"topic": "orderbook.1.BTCUSDT"}) is None

    @pytest.mark.asyncio
    async def test_json_probe_round_trip(self, fast_backoff: ExponentialBackoff) -> None:
        """Test JSON pings go out and matching acks record RTT."""
        dialer = MockDialer()
        client = BybitStreamClient(dialer=dialer, ping_interval=0.02, backoff=fast_backoff)
        try:
            await client.connect()
            transport = dialer.last
            await wait_until(lambda: len(transport.sent) >= 1)

            probe = transport.sent_json[0]
            assert probe == {"op": "ping", "req_id": "1"}
            assert transport.pings == []

            transport.push_message({"op": "ping", "ret_msg": "pong", "req_id": "1", "success": True})
            await wait_until(lambda: client.stats.round_trip_time is not None)
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_quote_delivery(self, dialer: MockDialer, fast_backoff: ExponentialBackoff) -> None:
        """Test a Bybit order book push reaches the callback."""
        client = BybitStreamClient(dialer=dialer, ping_interval=60.0, backoff=fast_backoff)
        quotes: list[MarketQuote] = []
        try:
            await client.connect()
            await client.subscribe_order_book("BTCUSDT", quotes.append)

            dialer.last.push_message(
                {
                    "topic": "orderbook.1.BTCUSDT",
                    "type": "snapshot",
                    "data": {"s": "BTCUSDT", "b": [["100.5", "3"]], "a": [["100.6", "1"]]},
                }
            )
            await wait_until(lambda: len(quotes) == 1)

            assert quotes[0] == MarketQuote(
                bid_price=100.5, bid_size=3.0, ask_price=100.6, ask_size=1.0
            )
        finally:
            await client.close()
