"""
Risk management for spread execution.

Provides a sticky circuit breaker: pre-trade checks against a balance
floor, a daily loss limit and a consecutive-loss limit. Once tripped,
trading stays halted until an explicit reset or the next trading day.
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime, timedelta

from crossarb.config.constants import (
    DEFAULT_MAX_CONSECUTIVE_LOSSES,
    DEFAULT_MAX_DAILY_LOSS,
    DEFAULT_MIN_BALANCE,
)
from crossarb.config.settings import RiskSettings


logger = logging.getLogger(__name__)


TRADING_DAY = timedelta(hours=24)


def local_midnight(moment: datetime) -> datetime:
    """Start of the local day containing `moment`."""
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


@dataclass
class RiskState:
    """Current circuit breaker state."""

    day_start: datetime
    daily_pnl: float = 0.0
    consecutive_losses: int = 0
    is_halted: bool = False
    halt_reason: str = ""

    def reset_daily(self, now: datetime) -> None:
        """Start a new trading day."""
        self.daily_pnl = 0.0
        self.consecutive_losses = 0
        self.is_halted = False
        self.halt_reason = ""
        self.day_start = local_midnight(now)


@dataclass(slots=True, frozen=True)
class RiskLimits:
    """Risk limit configuration."""

    max_daily_loss: float = DEFAULT_MAX_DAILY_LOSS
    max_consecutive_losses: int = DEFAULT_MAX_CONSECUTIVE_LOSSES
    min_balance: float = DEFAULT_MIN_BALANCE

    @classmethod
    def from_settings(cls, settings: RiskSettings) -> "RiskLimits":
        return cls(
            max_daily_loss=settings.max_daily_loss,
            max_consecutive_losses=settings.max_consecutive_losses,
            min_balance=settings.min_balance,
        )


class RiskCheckResult:
    """Result of a risk check."""

    __slots__ = ("passed", "reason")

    def __init__(self, passed: bool, reason: str = "") -> None:
        self.passed = passed
        self.reason = reason

    def __bool__(self) -> bool:
        return self.passed

    def __repr__(self) -> str:
        return f"RiskCheckResult(passed={self.passed}, reason={self.reason!r})"


class RiskController:
    """
    Sticky-halt circuit breaker.

    Features:
    - Minimum balance floor
    - Daily loss limit with local-midnight rollover
    - Consecutive loss limit
    - First halt reason is kept until reset

    Thread-safe: all state transitions happen under one lock.
    """

    def __init__(
        self,
        limits: RiskLimits | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        """
        Initialize risk controller.

        Args:
            limits: Risk limit configuration.
            clock: Source of local wall-clock time.
        """
        self._limits = limits or RiskLimits()
        self._clock = clock
        self._lock = threading.Lock()
        self._state = RiskState(day_start=local_midnight(clock()))

    def check(self, available_balance: float) -> RiskCheckResult:
        """
        Perform pre-trade risk checks.

        Args:
            available_balance: Balance reported by the hedge venue.

        Returns:
            RiskCheckResult, truthy when trading is allowed.
        """
        with self._lock:
            now = self._clock()
            if now > self._state.day_start + TRADING_DAY:
                self._state.reset_daily(now)
                logger.info(f"New trading day, risk state reset (day start {self._state.day_start})")

            if self._state.is_halted:
                return RiskCheckResult(False, f"Trading halted: {self._state.halt_reason}")

            if available_balance < self._limits.min_balance:
                reason = (
                    f"Balance {available_balance:.2f} below minimum "
                    f"{self._limits.min_balance:.2f}"
                )
                self._halt(reason)
                return RiskCheckResult(False, reason)

            if self._state.daily_pnl < -self._limits.max_daily_loss:
                reason = f"Daily loss limit reached ({self._state.daily_pnl:.4f})"
                self._halt(reason)
                return RiskCheckResult(False, reason)

            if self._state.consecutive_losses >= self._limits.max_consecutive_losses:
                reason = f"{self._state.consecutive_losses} consecutive losses"
                self._halt(reason)
                return RiskCheckResult(False, reason)

            return RiskCheckResult(True)

    def record_trade(self, pnl: float) -> None:
        """
        Record a completed trade.

        Args:
            pnl: Estimated profit/loss of the trade.
        """
        with self._lock:
            self._state.daily_pnl += pnl
            if pnl < 0:
                self._state.consecutive_losses += 1
            else:
                self._state.consecutive_losses = 0

            logger.debug(
                f"Trade recorded: PnL={pnl:.4f}, Daily PnL={self._state.daily_pnl:.4f}, "
                f"Loss streak={self._state.consecutive_losses}"
            )

    def reset(self) -> None:
        """Clear the halt and the loss streak. Daily PnL is kept."""
        with self._lock:
            self._state.is_halted = False
            self._state.halt_reason = ""
            self._state.consecutive_losses = 0
        logger.info("Risk controller reset, trading resumed")

    def _halt(self, reason: str) -> None:
        """Latch the halt; caller holds the lock."""
        if self._state.is_halted:
            return
        self._state.is_halted = True
        self._state.halt_reason = reason
        logger.warning(f"Trading halted: {reason}")

    @property
    def state(self) -> RiskState:
        """Get a copy of the current risk state."""
        with self._lock:
            return replace(self._state)

    @property
    def limits(self) -> RiskLimits:
        """Get risk limits."""
        return self._limits

    @property
    def daily_pnl(self) -> float:
        """Get today's realized PnL estimate."""
        with self._lock:
            return self._state.daily_pnl

    @property
    def is_halted(self) -> bool:
        """Check if trading is halted."""
        with self._lock:
            return self._state.is_halted

    def to_dict(self) -> dict[str, float | int | bool | str]:
        """Convert state to dict for logging."""
        with self._lock:
            return {
                "daily_pnl": self._state.daily_pnl,
                "consecutive_losses": self._state.consecutive_losses,
                "is_halted": self._state.is_halted,
                "halt_reason": self._state.halt_reason,
                "day_start": self._state.day_start.isoformat(),
            }
