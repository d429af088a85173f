"""Core module containing the main engine and type definitions."""

from crossarb.core.types import (
    AccountSnapshot,
    ArbDirection,
    ExecutionResult,
    ExecutionStatus,
    MarketQuote,
    Opportunity,
    OrderHandle,
    OrderSide,
)


__all__ = [
    "AccountSnapshot",
    "ArbDirection",
    "ExecutionResult",
    "ExecutionStatus",
    "MarketQuote",
    "Opportunity",
    "OrderHandle",
    "OrderSide",
]
