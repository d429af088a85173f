"""
Pytest configuration and shared fixtures.

Provides reusable test fixtures for all test modules.
"""

from datetime import datetime

import pytest

from crossarb.config.settings import (
    ApexSettings,
    BybitSettings,
    RiskSettings,
    Settings,
    StrategySettings,
)
from crossarb.core.types import MarketQuote
from crossarb.execution.risk import RiskController, RiskLimits
from crossarb.market.stream import ExponentialBackoff
from tests.mocks import MockDialer, MockOrderBookFeed, MockVenue


HOME_SYMBOL = "BTC-USDC"
HEDGE_SYMBOL = "BTCUSDT"


# =============================================================================
# Settings Fixtures
# =============================================================================


@pytest.fixture
def strategy_settings() -> StrategySettings:
    """Strategy tuned for fast, deterministic tests."""
    return StrategySettings(
        min_spread=1.0,
        order_size=0.01,
        max_position=0.05,
        check_interval_ms=10,
        take_profit=100.0,
        stop_loss=50.0,
        price_precision=1,
        size_precision=3,
        hedge_mode=True,
        status_interval_s=60.0,
        ready_timeout_s=1.0,
    )


@pytest.fixture
def risk_settings() -> RiskSettings:
    """Risk limits."""
    return RiskSettings(max_daily_loss=50.0, max_consecutive_losses=3, min_balance=100.0)


@pytest.fixture
def settings(strategy_settings: StrategySettings, risk_settings: RiskSettings) -> Settings:
    """Complete settings with dummy credentials."""
    return Settings(
        apex=ApexSettings(api_key="apex-key", api_secret="apex-secret", passphrase="apex-pass"),
        bybit=BybitSettings(api_key="bybit-key", api_secret="bybit-secret"),
        apex_symbol=HOME_SYMBOL,
        bybit_symbol=HEDGE_SYMBOL,
        strategy=strategy_settings,
        risk=risk_settings,
    )


# =============================================================================
# Market Data Fixtures
# =============================================================================


@pytest.fixture
def home_quote() -> MarketQuote:
    """Home venue top of book: ask at 99.0."""
    return MarketQuote(bid_price=98.9, bid_size=2.0, ask_price=99.0, ask_size=2.0)


@pytest.fixture
def hedge_quote() -> MarketQuote:
    """Hedge venue top of book: bid at 100.5."""
    return MarketQuote(bid_price=100.5, bid_size=3.0, ask_price=100.6, ask_size=3.0)


@pytest.fixture
def flat_quote() -> MarketQuote:
    """Quote offering no spread against flat_quote on the other venue."""
    return MarketQuote(bid_price=100.0, bid_size=1.0, ask_price=100.1, ask_size=1.0)


@pytest.fixture
def home_feed(flat_quote: MarketQuote) -> MockOrderBookFeed:
    """Home venue feed that delivers a flat snapshot on subscribe."""
    return MockOrderBookFeed(initial_quote=flat_quote)


@pytest.fixture
def hedge_feed(flat_quote: MarketQuote) -> MockOrderBookFeed:
    """Hedge venue feed that delivers a flat snapshot on subscribe."""
    return MockOrderBookFeed(initial_quote=flat_quote)


@pytest.fixture
def dialer() -> MockDialer:
    """Dialer handing out in-memory transports."""
    return MockDialer()


@pytest.fixture
def fast_backoff() -> ExponentialBackoff:
    """Backoff with millisecond delays."""
    return ExponentialBackoff(floor=0.01, ceiling=0.08)


# =============================================================================
# Venue & Risk Fixtures
# =============================================================================


@pytest.fixture
def home_venue() -> MockVenue:
    """Mocked home venue."""
    return MockVenue(name="apex")


@pytest.fixture
def hedge_venue() -> MockVenue:
    """Mocked hedge venue with a healthy balance."""
    return MockVenue(name="bybit", balance=1000.0)


class FakeClock:
    """Settable wall clock for day-rollover tests."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    """Clock starting mid-day."""
    return FakeClock(datetime(2024, 1, 15, 12, 0, 0))


@pytest.fixture
def risk(risk_settings: RiskSettings, clock: FakeClock) -> RiskController:
    """Risk controller on the fake clock."""
    return RiskController(RiskLimits.from_settings(risk_settings), clock=clock)
