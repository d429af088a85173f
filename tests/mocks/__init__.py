"""Mock implementations for testing."""

from tests.mocks.exchange import MockVenue
from tests.mocks.market import MockOrderBookFeed
from tests.mocks.transport import MockDialer, MockTransport, wait_until


__all__ = [
    "MockDialer",
    "MockOrderBookFeed",
    "MockTransport",
    "MockVenue",
    "wait_until",
]
