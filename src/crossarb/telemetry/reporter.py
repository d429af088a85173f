"""
Periodic status reporter.

Logs a one-line summary of both venues' quotes, the two cross-venue
spreads, position and PnL. Observation only: it never changes state.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

from crossarb.core.types import MarketQuote


logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class EngineStatus:
    """Point-in-time view of the engine."""

    home: MarketQuote
    hedge: MarketQuote
    position: float
    total_pnl: float
    daily_pnl: float

    @property
    def long_spread(self) -> float:
        """Hedge bid minus home ask: edge for buying home, selling hedge."""
        return self.hedge.bid_price - self.home.ask_price

    @property
    def short_spread(self) -> float:
        """Home bid minus hedge ask: edge for selling home, buying hedge."""
        return self.home.bid_price - self.hedge.ask_price


def format_status(status: EngineStatus) -> str:
    """Render a status line."""
    return (
        f"Home {status.home.bid_price:.2f}/{status.home.ask_price:.2f} | "
        f"Hedge {status.hedge.bid_price:.2f}/{status.hedge.ask_price:.2f} | "
        f"Spread L={status.long_spread:+.4f} S={status.short_spread:+.4f} | "
        f"|Pos|={abs(status.position):.4f} | "
        f"PnL={status.total_pnl:.4f} | Daily={status.daily_pnl:.4f}"
    )


class StatusReporter:
    """Logs an EngineStatus snapshot on a fixed interval."""

    def __init__(self, snapshot: Callable[[], EngineStatus]) -> None:
        """
        Initialize reporter.

        Args:
            snapshot: Returns the current engine status.
        """
        self._snapshot = snapshot
        self._reports = 0

    def report(self) -> str:
        """Log one status line and return it."""
        line = format_status(self._snapshot())
        self._reports += 1
        logger.info(f"[Status] {line}")
        return line

    async def run(self, interval: float, stop_event: asyncio.Event) -> None:
        """
        Report every `interval` seconds until `stop_event` is set.

        Args:
            interval: Seconds between reports.
            stop_event: Shutdown signal.
        """
        while not stop_event.is_set():
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=interval)
            except TimeoutError:
                self.report()

    @property
    def report_count(self) -> int:
        """Number of status lines emitted."""
        return self._reports
