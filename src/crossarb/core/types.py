"""
Type definitions for the arbitrage engine.

This module contains the dataclasses, enums and Protocol definitions
shared between the market data, execution and engine layers.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import ClassVar, Protocol


# =============================================================================
# Enums
# =============================================================================


class OrderSide(str, Enum):
    """Order side enumeration."""

    BUY = "BUY"
    SELL = "SELL"

    @property
    def opposite(self) -> "OrderSide":
        """The side that offsets this one."""
        return OrderSide.SELL if self is OrderSide.BUY else OrderSide.BUY


class ArbDirection(Enum):
    """
    Direction of a cross-venue opportunity.

    LONG: home ask below hedge bid, buy on home and sell on hedge.
    SHORT: home bid above hedge ask, sell on home and buy on hedge.
    """

    LONG = auto()
    SHORT = auto()

    @property
    def home_side(self) -> OrderSide:
        """Side of the first leg on the home venue."""
        return OrderSide.BUY if self is ArbDirection.LONG else OrderSide.SELL

    @property
    def position_sign(self) -> int:
        """Sign applied to the net position after execution."""
        return 1 if self is ArbDirection.LONG else -1


class ExecutionStatus(Enum):
    """Outcome of a two-leg execution."""

    HEDGED = auto()  # both legs accepted
    UNHEDGED = auto()  # leg 1 accepted, hedge mode disabled
    NAKED = auto()  # leg 1 accepted, hedge leg rejected
    FAILED = auto()  # leg 1 rejected, nothing happened


# =============================================================================
# Market Data Types
# =============================================================================


@dataclass(slots=True, frozen=True)
class MarketQuote:
    """
    Best bid and ask of one venue.

    Frozen so a snapshot can be swapped by reference from the feed
    while the decision loop reads it.
    """

    bid_price: float = 0.0
    bid_size: float = 0.0
    ask_price: float = 0.0
    ask_size: float = 0.0

    EMPTY: ClassVar["MarketQuote"]

    @property
    def is_tradable(self) -> bool:
        """A quote with a zero price has not been initialized."""
        return self.bid_price > 0 and self.ask_price > 0


MarketQuote.EMPTY = MarketQuote()


# =============================================================================
# Strategy Types
# =============================================================================


@dataclass(slots=True, frozen=True)
class Opportunity:
    """Detected cross-venue spread."""

    direction: ArbDirection
    home_price: float  # price taken on the home venue
    hedge_price: float  # price taken on the hedge venue
    spread: float
    size: float

    @property
    def estimated_pnl(self) -> float:
        """
        Requested spread times size.

        Not derived from fills; diverges from settlement PnL under
        slippage or partial fills.
        """
        return self.spread * self.size


# =============================================================================
# Venue Types
# =============================================================================


@dataclass(slots=True, frozen=True)
class OrderHandle:
    """Acknowledgement of an accepted order."""

    order_id: str
    symbol: str
    side: OrderSide


@dataclass(slots=True, frozen=True)
class AccountSnapshot:
    """Account health reported by a venue."""

    available_balance: float
    total_equity: float = 0.0


@dataclass(slots=True)
class ExecutionResult:
    """Result of executing one opportunity."""

    opportunity: Opportunity
    status: ExecutionStatus
    home_order: OrderHandle | None = None
    hedge_order: OrderHandle | None = None
    error_message: str = ""

    @property
    def changed_exposure(self) -> bool:
        """True once leg 1 has been accepted."""
        return self.status is not ExecutionStatus.FAILED

    @property
    def is_naked(self) -> bool:
        """True if leg 1 filled but the hedge leg did not."""
        return self.status is ExecutionStatus.NAKED


# =============================================================================
# Protocols (Interfaces)
# =============================================================================


class OrderGateway(Protocol):
    """Order submission on one venue."""

    async def place_order(
        self,
        symbol: str,
        side: OrderSide,
        order_type: str,
        size: str,
        price: str,
        time_in_force: str,
        reduce_only: bool = False,
    ) -> OrderHandle:
        """Submit an order; raises VenueError when rejected."""
        ...

    async def cancel_all_orders(self, symbol: str) -> None:
        """Cancel every open order for a symbol."""
        ...

    async def close(self) -> None:
        """Release network resources."""
        ...


class HedgeGateway(OrderGateway, Protocol):
    """Order submission plus account queries on the hedge venue."""

    async def get_account(self) -> AccountSnapshot:
        """Fetch available balance; raises VenueError on failure."""
        ...
