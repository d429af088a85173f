"""
Two-leg spread execution.

Sends leg 1 to the home venue and, in hedge mode, the offsetting leg 2
to the hedge venue. Legs are sequential: the hedge is only sent once
the home venue has accepted leg 1.
"""

import logging
from dataclasses import dataclass

from crossarb.config.constants import ORDER_TYPE_LIMIT, TIF_IOC
from crossarb.config.settings import StrategySettings
from crossarb.core.types import (
    ExecutionResult,
    ExecutionStatus,
    Opportunity,
    OrderGateway,
)
from crossarb.exchange.client import VenueError


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ExecutionStats:
    """Running execution counters."""

    total: int = 0
    hedged: int = 0
    unhedged: int = 0
    naked: int = 0
    failed: int = 0


def format_decimal(value: float, precision: int) -> str:
    """Fixed-point string as sent to the venues."""
    return f"{value:.{precision}f}"


class SpreadExecutor:
    """
    Executes cross-venue spread opportunities.

    Features:
    - Home leg as LIMIT IOC at the observed top-of-book price
    - Optional hedge leg on the opposite side of the hedge venue
    - Naked-position detection when the hedge leg is rejected
    """

    def __init__(
        self,
        home: OrderGateway,
        hedge: OrderGateway,
        home_symbol: str,
        hedge_symbol: str,
        strategy: StrategySettings,
    ) -> None:
        """
        Initialize executor.

        Args:
            home: Venue receiving leg 1.
            hedge: Venue receiving the offsetting leg.
            home_symbol: Symbol on the home venue.
            hedge_symbol: Symbol on the hedge venue.
            strategy: Sizes, precisions and hedge mode.
        """
        self._home = home
        self._hedge = hedge
        self._home_symbol = home_symbol
        self._hedge_symbol = hedge_symbol
        self._strategy = strategy
        self._stats = ExecutionStats()

    async def execute(self, opportunity: Opportunity) -> ExecutionResult:
        """
        Execute one opportunity.

        Args:
            opportunity: Detected spread.

        Returns:
            ExecutionResult; FAILED means nothing was traded.
        """
        self._stats.total += 1
        strategy = self._strategy
        size = format_decimal(opportunity.size, strategy.size_precision)
        home_side = opportunity.direction.home_side

        logger.info(
            f"Executing {opportunity.direction.name}: {home_side.value} {size} "
            f"{self._home_symbol} @ {opportunity.home_price}, spread={opportunity.spread:.4f}"
        )

        try:
            home_order = await self._home.place_order(
                symbol=self._home_symbol,
                side=home_side,
                order_type=ORDER_TYPE_LIMIT,
                size=size,
                price=format_decimal(opportunity.home_price, strategy.price_precision),
                time_in_force=TIF_IOC,
                reduce_only=False,
            )
        except VenueError as e:
            self._stats.failed += 1
            logger.error(f"Home leg rejected, aborting: {e}")
            return ExecutionResult(opportunity, ExecutionStatus.FAILED, error_message=str(e))

        if not strategy.hedge_mode:
            self._stats.unhedged += 1
            return ExecutionResult(opportunity, ExecutionStatus.UNHEDGED, home_order=home_order)

        hedge_side = home_side.opposite
        try:
            hedge_order = await self._hedge.place_order(
                symbol=self._hedge_symbol,
                side=hedge_side,
                order_type=ORDER_TYPE_LIMIT,
                size=size,
                price=format_decimal(opportunity.hedge_price, strategy.price_precision),
                time_in_force=TIF_IOC,
                reduce_only=False,
            )
        except VenueError as e:
            self._stats.naked += 1
            logger.error(
                f"NAKED POSITION: home {home_side.value} {size} {self._home_symbol} filled "
                f"(order {home_order.order_id}) but hedge {hedge_side.value} failed: {e}"
            )
            return ExecutionResult(
                opportunity,
                ExecutionStatus.NAKED,
                home_order=home_order,
                error_message=str(e),
            )

        self._stats.hedged += 1
        logger.info(
            f"Hedged: home {home_order.order_id} / hedge {hedge_order.order_id}, "
            f"est. PnL={opportunity.estimated_pnl:.4f}"
        )
        return ExecutionResult(
            opportunity,
            ExecutionStatus.HEDGED,
            home_order=home_order,
            hedge_order=hedge_order,
        )

    @property
    def stats(self) -> ExecutionStats:
        """Get execution counters."""
        return self._stats
