"""Order execution and risk management."""

from crossarb.execution.executor import ExecutionStats, SpreadExecutor
from crossarb.execution.risk import RiskCheckResult, RiskController, RiskLimits, RiskState


__all__ = [
    "ExecutionStats",
    "RiskCheckResult",
    "RiskController",
    "RiskLimits",
    "RiskState",
    "SpreadExecutor",
]
