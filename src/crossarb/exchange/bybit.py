"""
Async Bybit V5 REST client (hedge venue).

Carries the offsetting leg of each spread trade and supplies the
available balance the risk controller checks every tick.
"""

import logging
from typing import Any

from pydantic import ValidationError

from crossarb.config.constants import (
    BYBIT_ACCOUNT_TYPE,
    BYBIT_CATEGORY,
    BYBIT_DEFAULT_RECV_WINDOW_MS,
    BYBIT_ENDPOINT_CANCEL_ALL,
    BYBIT_ENDPOINT_OPEN_ORDERS,
    BYBIT_ENDPOINT_ORDER_CREATE,
    BYBIT_ENDPOINT_WALLET_BALANCE,
    BYBIT_REST_URL,
)
from crossarb.config.settings import BybitSettings
from crossarb.core.types import AccountSnapshot, OrderHandle, OrderSide
from crossarb.exchange.client import VenueAPIError, VenueClient, VenueError
from crossarb.exchange.models import (
    BybitEnvelope,
    BybitOrder,
    BybitOrderCreated,
    BybitOrderList,
    BybitWalletBalance,
)
from crossarb.exchange.signer import BybitSigner


logger = logging.getLogger(__name__)


class BybitClient(VenueClient):
    """Bybit V5 REST client for linear perpetuals."""

    venue_name = "Bybit"

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        base_url: str = BYBIT_REST_URL,
        recv_window_ms: int = BYBIT_DEFAULT_RECV_WINDOW_MS,
    ) -> None:
        """
        Initialize the Bybit client.

        Args:
            api_key: Bybit API key.
            api_secret: Bybit API secret.
            base_url: REST base URL.
            recv_window_ms: Request validity window in milliseconds.
        """
        super().__init__(base_url)
        self._signer = BybitSigner(api_key, api_secret, recv_window_ms)

    @classmethod
    def from_settings(cls, settings: BybitSettings) -> "BybitClient":
        return cls(
            api_key=settings.api_key.get_secret_value(),
            api_secret=settings.api_secret.get_secret_value(),
            base_url=settings.base_url,
            recv_window_ms=settings.recv_window_ms,
        )

    def _auth_headers(self, method: str, path: str, query: str, payload: str) -> dict[str, str]:
        # GET signs the query string, POST signs the JSON body
        return self._signer.headers(query if method == "GET" else payload)

    def _check_payload(self, data: dict[str, Any]) -> None:
        ret_code = data.get("retCode", 0)
        if ret_code != 0:
            raise VenueAPIError(
                f"Bybit error {ret_code}: {data.get('retMsg', '')}",
                code=ret_code,
            )

    # =========================================================================
    # Account
    # =========================================================================

    async def get_account(self) -> AccountSnapshot:
        """Get unified-account equity and available balance."""
        data = await self._request(
            "GET",
            BYBIT_ENDPOINT_WALLET_BALANCE,
            params={"accountType": BYBIT_ACCOUNT_TYPE},
        )
        try:
            wallet = BybitEnvelope[BybitWalletBalance].model_validate(data).result
        except ValidationError as e:
            raise VenueError(f"Bybit malformed wallet response: {e}") from e

        if not wallet.accounts:
            raise VenueError("Bybit wallet response has no accounts")

        account = wallet.accounts[0]
        return AccountSnapshot(available_balance=account.available, total_equity=account.equity)

    # =========================================================================
    # Orders
    # =========================================================================

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
        """
        Place an order.

        Args:
            symbol: Trading symbol, e.g. "BTCUSDT".
            side: Order side.
            order_type: "LIMIT" or "MARKET".
            size: Formatted order quantity.
            price: Formatted limit price, empty for market orders.
            time_in_force: "GTC", "IOC" or "FOK".
            reduce_only: Only reduce an existing position.

        Returns:
            Handle of the accepted order.
        """
        # V5 expects "Buy"/"Sell" and "Limit"/"Market"
        body: dict[str, Any] = {
            "category": BYBIT_CATEGORY,
            "symbol": symbol,
            "side": side.value.capitalize(),
            "orderType": order_type.capitalize(),
            "qty": size,
            "timeInForce": time_in_force,
            "reduceOnly": reduce_only,
        }
        if price:
            body["price"] = price

        data = await self._request("POST", BYBIT_ENDPOINT_ORDER_CREATE, body=body)
        try:
            created = BybitEnvelope[BybitOrderCreated].model_validate(data).result
        except ValidationError as e:
            raise VenueError(f"Bybit malformed order response: {e}") from e

        logger.debug(f"Bybit order accepted: {created.order_id} {side.value} {size} @ {price}")
        return OrderHandle(order_id=created.order_id, symbol=symbol, side=side)

    async def cancel_all_orders(self, symbol: str) -> None:
        """Cancel every open order for a symbol."""
        await self._request(
            "POST",
            BYBIT_ENDPOINT_CANCEL_ALL,
            body={"category": BYBIT_CATEGORY, "symbol": symbol},
        )

    async def get_open_orders(self, symbol: str) -> list[BybitOrder]:
        """Get open orders for a symbol."""
        data = await self._request(
            "GET",
            BYBIT_ENDPOINT_OPEN_ORDERS,
            params={"category": BYBIT_CATEGORY, "symbol": symbol},
        )
        try:
            return BybitEnvelope[BybitOrderList].model_validate(data).result.orders
        except ValidationError as e:
            raise VenueError(f"Bybit malformed open-orders response: {e}") from e
