"""
Async Apex Pro REST client (home venue).

Leg 1 of every spread trade is sent here as a LIMIT IOC order.
"""

import logging
from typing import Any

from pydantic import ValidationError

from crossarb.config.constants import (
    APEX_ENDPOINT_ACCOUNT,
    APEX_ENDPOINT_OPEN_ORDERS,
    APEX_ENDPOINT_ORDER,
    APEX_REST_URL,
)
from crossarb.config.settings import ApexSettings
from crossarb.core.types import AccountSnapshot, OrderHandle, OrderSide
from crossarb.exchange.client import VenueClient, VenueError
from crossarb.exchange.models import ApexAccount, ApexEnvelope, ApexOrder
from crossarb.exchange.signer import ApexSigner


logger = logging.getLogger(__name__)


class ApexClient(VenueClient):
    """Apex Pro REST client signing every private request."""

    venue_name = "Apex"

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        passphrase: str,
        base_url: str = APEX_REST_URL,
    ) -> None:
        """
        Initialize the Apex client.

        Args:
            api_key: Apex API key.
            api_secret: Apex API secret.
            passphrase: Apex API passphrase.
            base_url: REST base URL.
        """
        super().__init__(base_url)
        self._signer = ApexSigner(api_key, api_secret, passphrase)

    @classmethod
    def from_settings(cls, settings: ApexSettings) -> "ApexClient":
        return cls(
            api_key=settings.api_key.get_secret_value(),
            api_secret=settings.api_secret.get_secret_value(),
            passphrase=settings.passphrase.get_secret_value(),
            base_url=settings.base_url,
        )

    def _auth_headers(self, method: str, path: str, query: str, payload: str) -> dict[str, str]:
        return self._signer.headers(method, path, payload)

    # =========================================================================
    # Account
    # =========================================================================

    async def get_account(self) -> AccountSnapshot:
        """Get equity and available balance."""
        data = await self._request("GET", APEX_ENDPOINT_ACCOUNT)
        try:
            account = ApexEnvelope[ApexAccount].model_validate(data).data
        except ValidationError as e:
            raise VenueError(f"Apex malformed account response: {e}") from e

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
            symbol: Trading symbol, e.g. "BTC-USDC".
            side: Order side.
            order_type: "LIMIT" or "MARKET".
            size: Formatted order size.
            price: Formatted limit price, empty for market orders.
            time_in_force: "GTC", "IOC" or "FOK".
            reduce_only: Only reduce an existing position.

        Returns:
            Handle of the accepted order.
        """
        body: dict[str, Any] = {
            "symbol": symbol,
            "side": side.value,
            "type": order_type,
            "size": size,
            "timeInForce": time_in_force,
            "reduceOnly": reduce_only,
        }
        if price:
            body["price"] = price

        data = await self._request("POST", APEX_ENDPOINT_ORDER, body=body)
        try:
            order = ApexEnvelope[ApexOrder].model_validate(data).data
        except ValidationError as e:
            raise VenueError(f"Apex malformed order response: {e}") from e

        logger.debug(f"Apex order accepted: {order.id} {side.value} {size} @ {price}")
        return OrderHandle(order_id=order.id, symbol=symbol, side=side)

    async def cancel_all_orders(self, symbol: str) -> None:
        """Cancel every open order for a symbol."""
        await self._request("DELETE", APEX_ENDPOINT_OPEN_ORDERS, params={"symbol": symbol})

    async def get_open_orders(self, symbol: str) -> list[ApexOrder]:
        """Get open orders for a symbol."""
        data = await self._request("GET", APEX_ENDPOINT_OPEN_ORDERS, params={"symbol": symbol})
        try:
            return ApexEnvelope[list[ApexOrder]].model_validate(data).data
        except ValidationError as e:
            raise VenueError(f"Apex malformed open-orders response: {e}") from e
