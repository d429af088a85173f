"""
Trading constants and configuration values.

This module contains all hardcoded values used throughout the arbitrage engine.
Values are organized by category for easy maintenance and auditing.
"""

from typing import Final


# =============================================================================
# Apex Pro Endpoints (home venue)
# =============================================================================

APEX_REST_URL: Final[str] = "https://pro.apex.exchange"
APEX_WS_URL: Final[str] = "wss://quote.pro.apex.exchange/realtime_public"

APEX_ENDPOINT_ACCOUNT: Final[str] = "/api/v1/account"
APEX_ENDPOINT_ORDER: Final[str] = "/api/v1/order"
APEX_ENDPOINT_OPEN_ORDERS: Final[str] = "/api/v1/open-orders"


# =============================================================================
# Bybit Endpoints (hedge venue)
# =============================================================================

BYBIT_REST_URL: Final[str] = "https://api.bybit.com"
BYBIT_WS_URL: Final[str] = "wss://stream.bybit.com/v5/public/linear"

BYBIT_ENDPOINT_WALLET_BALANCE: Final[str] = "/v5/account/wallet-balance"
BYBIT_ENDPOINT_ORDER_CREATE: Final[str] = "/v5/order/create"
BYBIT_ENDPOINT_CANCEL_ALL: Final[str] = "/v5/order/cancel-all"
BYBIT_ENDPOINT_OPEN_ORDERS: Final[str] = "/v5/order/realtime"

BYBIT_CATEGORY: Final[str] = "linear"
BYBIT_ACCOUNT_TYPE: Final[str] = "UNIFIED"
BYBIT_DEFAULT_RECV_WINDOW_MS: Final[int] = 5000


# =============================================================================
# Reconnection Strategy
# =============================================================================

MIN_RECONNECT_DELAY: Final[float] = 1.0  # seconds
MAX_RECONNECT_DELAY: Final[float] = 30.0  # seconds
RECONNECT_MULTIPLIER: Final[float] = 2.0


# =============================================================================
# WebSocket Configuration
# =============================================================================

WS_PING_INTERVAL: Final[float] = 20.0  # seconds
WS_PONG_TIMEOUT: Final[float] = 10.0  # seconds
WS_DIAL_TIMEOUT: Final[float] = 10.0  # seconds
WS_MAX_MESSAGE_SIZE: Final[int] = 10 * 1024 * 1024  # 10MB
WS_CLOSE_TIMEOUT: Final[float] = 5.0  # seconds


# =============================================================================
# REST Configuration
# =============================================================================

HTTP_REQUEST_TIMEOUT: Final[float] = 10.0  # seconds


# =============================================================================
# Order Configuration
# =============================================================================

ORDER_TYPE_LIMIT: Final[str] = "LIMIT"

TIF_IOC: Final[str] = "IOC"  # Immediate Or Cancel


# =============================================================================
# Strategy Defaults
# =============================================================================

DEFAULT_MIN_SPREAD: Final[float] = 1.0  # quote currency
DEFAULT_ORDER_SIZE: Final[float] = 0.001
DEFAULT_MAX_POSITION: Final[float] = 0.01
DEFAULT_CHECK_INTERVAL_MS: Final[int] = 200
DEFAULT_TAKE_PROFIT: Final[float] = 100.0
DEFAULT_STOP_LOSS: Final[float] = 50.0
DEFAULT_PRICE_PRECISION: Final[int] = 1
DEFAULT_SIZE_PRECISION: Final[int] = 3

STATUS_REPORT_INTERVAL: Final[float] = 30.0  # seconds
MARKET_DATA_READY_TIMEOUT: Final[float] = 10.0  # seconds
MARKET_DATA_POLL_INTERVAL: Final[float] = 0.2  # seconds


# =============================================================================
# Risk Defaults
# =============================================================================

DEFAULT_MAX_DAILY_LOSS: Final[float] = 50.0
DEFAULT_MAX_CONSECUTIVE_LOSSES: Final[int] = 5
DEFAULT_MIN_BALANCE: Final[float] = 100.0


# =============================================================================
# Logging & Telemetry
# =============================================================================

LOG_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

# Maximum log queue size
MAX_LOG_QUEUE_SIZE: Final[int] = 10_000
