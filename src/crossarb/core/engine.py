"""
Main arbitrage engine orchestrator.

Subscribes to both venues' top of book, polls the cross-venue spreads
on a fixed tick, and executes at most one two-leg trade per tick under
the risk controller's supervision.
"""

import asyncio
import logging
import threading
from typing import Any

from crossarb.config.constants import MARKET_DATA_POLL_INTERVAL
from crossarb.config.settings import Settings
from crossarb.core.types import (
    ArbDirection,
    ExecutionResult,
    HedgeGateway,
    MarketQuote,
    Opportunity,
    OrderGateway,
)
from crossarb.exchange.apex import ApexClient
from crossarb.exchange.bybit import BybitClient
from crossarb.exchange.client import VenueError
from crossarb.execution.executor import SpreadExecutor
from crossarb.execution.risk import RiskController, RiskLimits
from crossarb.market.quotes import QuoteCell
from crossarb.market.stream import StreamError
from crossarb.market.venues import ApexStreamClient, BybitStreamClient, OrderBookStreamClient
from crossarb.telemetry.reporter import EngineStatus, StatusReporter


logger = logging.getLogger(__name__)


class EngineStartError(Exception):
    """Raised when the engine cannot reach a tradable state."""


class ArbitrageEngine:
    """
    Cross-venue spread trading engine.

    Manages the lifecycle of:
    - Order book feeds from the home and hedge venues
    - The decision loop and two-leg execution
    - Position and PnL bookkeeping
    - Periodic status reporting
    """

    def __init__(
        self,
        settings: Settings,
        *,
        home_stream: OrderBookStreamClient | None = None,
        hedge_stream: OrderBookStreamClient | None = None,
        home_venue: OrderGateway | None = None,
        hedge_venue: HedgeGateway | None = None,
        risk: RiskController | None = None,
    ) -> None:
        """
        Initialize the engine.

        Collaborators default to the live Apex (home) and Bybit (hedge)
        clients built from settings.

        Args:
            settings: Application settings.
            home_stream: Order book feed of the home venue.
            hedge_stream: Order book feed of the hedge venue.
            home_venue: Order gateway of the home venue.
            hedge_venue: Order and account gateway of the hedge venue.
            risk: Circuit breaker.
        """
        self._settings = settings
        self._strategy = settings.strategy

        self._home_stream = home_stream or ApexStreamClient(settings.apex.ws_url)
        self._hedge_stream = hedge_stream or BybitStreamClient(settings.bybit.ws_url)
        self._home_venue: OrderGateway = home_venue or ApexClient.from_settings(settings.apex)
        self._hedge_venue: HedgeGateway = hedge_venue or BybitClient.from_settings(settings.bybit)
        self._risk = risk or RiskController(RiskLimits.from_settings(settings.risk))

        self._executor = SpreadExecutor(
            home=self._home_venue,
            hedge=self._hedge_venue,
            home_symbol=settings.apex_symbol,
            hedge_symbol=settings.bybit_symbol,
            strategy=self._strategy,
        )
        self._reporter = StatusReporter(self.status)

        # Latest top of book per venue
        self._home_quote = QuoteCell()
        self._hedge_quote = QuoteCell()

        # Bookkeeping, each behind its own lock
        self._position = 0.0
        self._position_lock = threading.Lock()
        self._total_pnl = 0.0
        self._pnl_lock = threading.Lock()

        # Lifecycle
        self._started = False
        self._stop_event = asyncio.Event()
        self._stopped = asyncio.Event()
        self._tasks: list[asyncio.Task[None]] = []
        self._stop_task: asyncio.Task[None] | None = None

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> None:
        """
        Connect feeds, wait for prices and launch the background loops.

        Raises:
            EngineStartError: On subscription failure or readiness timeout.
        """
        if self._started:
            raise EngineStartError("Engine already started")
        self._started = True

        logger.info(
            f"Starting engine: {self._settings.apex_symbol} (home) vs "
            f"{self._settings.bybit_symbol} (hedge), min spread {self._strategy.min_spread}"
        )

        try:
            await self._home_stream.connect()
            await self._home_stream.subscribe_order_book(
                self._settings.apex_symbol, self._home_quote.store
            )
            await self._hedge_stream.connect()
            await self._hedge_stream.subscribe_order_book(
                self._settings.bybit_symbol, self._hedge_quote.store
            )
        except StreamError as e:
            await self._close_connections()
            raise EngineStartError(f"Market data subscription failed: {e}") from e

        logger.info("Waiting for market data from both venues...")
        if not await self._wait_for_market_data(self._strategy.ready_timeout_s):
            await self._close_connections()
            raise EngineStartError(
                f"No market data from both venues within {self._strategy.ready_timeout_s:.1f}s"
            )

        self._tasks = [
            asyncio.create_task(self._decision_loop(), name="engine-decision"),
            asyncio.create_task(
                self._reporter.run(self._strategy.status_interval_s, self._stop_event),
                name="engine-reporter",
            ),
        ]
        logger.info("Engine started, trading loop running")

    async def stop(self) -> None:
        """Stop the engine. Shutdown runs once however often it is requested."""
        await asyncio.shield(self.request_stop())

    async def wait_stopped(self) -> None:
        """Wait until shutdown has completed, including self-initiated stops."""
        await self._stopped.wait()

    def request_stop(self) -> asyncio.Task[None]:
        """Schedule the shutdown sequence if it is not already scheduled."""
        if self._stop_task is None:
            self._stop_task = asyncio.create_task(self._shutdown(), name="engine-stop")
        return self._stop_task

    async def _shutdown(self) -> None:
        logger.info("Stopping engine...")
        try:
            self._stop_event.set()

            # No trade may start once cleanup begins
            if self._tasks:
                results = await asyncio.gather(*self._tasks, return_exceptions=True)
                for task, result in zip(self._tasks, results, strict=True):
                    if isinstance(result, Exception):
                        logger.error(f"Task {task.get_name()} ended with error: {result!r}")

            if self._started:
                try:
                    await self._hedge_venue.cancel_all_orders(self._settings.bybit_symbol)
                except VenueError as e:
                    logger.warning(f"Cancel-all on hedge venue failed: {e}")

            await self._close_connections()
            logger.info(
                f"Engine stopped. Final PnL: {self.total_pnl:.4f}, position: {self.position:.4f}"
            )
        finally:
            self._stopped.set()

    async def _close_connections(self) -> None:
        await self._home_stream.close()
        await self._hedge_stream.close()
        await self._home_venue.close()
        await self._hedge_venue.close()

    async def _wait_for_market_data(self, timeout: float) -> bool:
        """Poll until both venues have a non-zero bid."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout

        while True:
            if self._home_quote.load().bid_price > 0 and self._hedge_quote.load().bid_price > 0:
                return True
            if loop.time() >= deadline:
                return False
            await asyncio.sleep(MARKET_DATA_POLL_INTERVAL)

    # =========================================================================
    # Decision Loop
    # =========================================================================

    async def _decision_loop(self) -> None:
        interval = self._strategy.check_interval
        while True:
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=interval)
                return
            except TimeoutError:
                pass

            try:
                await self._tick()
            except Exception:
                logger.exception("Decision tick failed")

    async def _tick(self) -> ExecutionResult | None:
        """
        Run one decision cycle.

        Returns:
            The execution result if a trade was attempted, else None.
        """
        home = self._home_quote.load()
        hedge = self._hedge_quote.load()
        if not (home.is_tradable and hedge.is_tradable):
            return None

        try:
            account = await self._hedge_venue.get_account()
        except VenueError as e:
            logger.warning(f"Account query failed, skipping tick: {e}")
            return None

        check = self._risk.check(account.available_balance)
        if not check:
            logger.debug(f"Risk check rejected: {check.reason}")
            return None

        total_pnl = self.total_pnl
        if total_pnl >= self._strategy.take_profit:
            logger.info(f"Take-profit reached (PnL {total_pnl:.4f}), stopping")
            self.request_stop()
            return None
        if total_pnl <= -self._strategy.stop_loss:
            logger.warning(f"Stop-loss reached (PnL {total_pnl:.4f}), stopping")
            self.request_stop()
            return None

        opportunity = self._find_opportunity(home, hedge, self.position)
        if opportunity is None:
            return None

        result = await self._executor.execute(opportunity)
        if result.changed_exposure:
            self._book(result)
        return result

    def _find_opportunity(
        self,
        home: MarketQuote,
        hedge: MarketQuote,
        position: float,
    ) -> Opportunity | None:
        """Check the long spread first, then the short spread."""
        size = self._strategy.order_size
        max_position = self._strategy.max_position
        min_spread = self._strategy.min_spread

        long_spread = hedge.bid_price - home.ask_price
        if long_spread >= min_spread and position < max_position:
            return Opportunity(
                direction=ArbDirection.LONG,
                home_price=home.ask_price,
                hedge_price=hedge.bid_price,
                spread=long_spread,
                size=size,
            )

        short_spread = home.bid_price - hedge.ask_price
        if short_spread >= min_spread and position > -max_position:
            return Opportunity(
                direction=ArbDirection.SHORT,
                home_price=home.bid_price,
                hedge_price=hedge.ask_price,
                spread=short_spread,
                size=size,
            )

        return None

    def _book(self, result: ExecutionResult) -> None:
        """Apply an executed trade to position and PnL."""
        opportunity = result.opportunity
        pnl = opportunity.estimated_pnl

        with self._position_lock:
            self._position += opportunity.direction.position_sign * opportunity.size
            position = self._position
        with self._pnl_lock:
            self._total_pnl += pnl
            total = self._total_pnl

        self._risk.record_trade(pnl)
        logger.info(f"Booked {result.status.name}: position={position:.4f}, PnL={total:.4f}")

    # =========================================================================
    # Introspection
    # =========================================================================

    @property
    def position(self) -> float:
        """Net position on the home venue in contracts."""
        with self._position_lock:
            return self._position

    @property
    def total_pnl(self) -> float:
        """Cumulative estimated PnL since start."""
        with self._pnl_lock:
            return self._total_pnl

    @property
    def is_running(self) -> bool:
        """Check if the background loops are live."""
        return bool(self._tasks) and not self._stop_event.is_set()

    @property
    def risk(self) -> RiskController:
        """Get the risk controller."""
        return self._risk

    @property
    def executor(self) -> SpreadExecutor:
        """Get the executor."""
        return self._executor

    def status(self) -> EngineStatus:
        """Snapshot for the status reporter."""
        return EngineStatus(
            home=self._home_quote.load(),
            hedge=self._hedge_quote.load(),
            position=self.position,
            total_pnl=self.total_pnl,
            daily_pnl=self._risk.daily_pnl,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert state to dict for logging."""
        return {
            "position": self.position,
            "total_pnl": self.total_pnl,
            "running": self.is_running,
            "risk": self._risk.to_dict(),
        }
