"""Configuration module for the arbitrage engine."""

from crossarb.config.constants import (
    APEX_WS_URL,
    BYBIT_WS_URL,
    MAX_RECONNECT_DELAY,
    MIN_RECONNECT_DELAY,
)
from crossarb.config.settings import (
    ApexSettings,
    BybitSettings,
    RiskSettings,
    Settings,
    StrategySettings,
    load_settings,
)


__all__ = [
    "APEX_WS_URL",
    "BYBIT_WS_URL",
    "MAX_RECONNECT_DELAY",
    "MIN_RECONNECT_DELAY",
    "ApexSettings",
    "BybitSettings",
    "RiskSettings",
    "Settings",
    "StrategySettings",
    "load_settings",
]
