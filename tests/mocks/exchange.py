"""
Mock venue REST client for testing.

Simulates order submission and account queries without network calls.
"""

from typing import Any

from crossarb.core.types import AccountSnapshot, OrderHandle, OrderSide
from crossarb.exchange.client import VenueAPIError, VenueError


class MockVenue:
    """
    Mock venue client for testing.

    Records every order and can be configured to reject orders or fail
    account queries.
    """

    def __init__(
        self,
        name: str = "venue",
        balance: float = 1000.0,
        reject_orders: bool = False,
    ) -> None:
        """
        Initialize mock venue.

        Args:
            name: Prefix for generated order ids.
            balance: Available balance reported by get_account.
            reject_orders: Whether place_order should raise.
        """
        self.name = name
        self.balance = balance
        self.reject_orders = reject_orders
        self.account_error: VenueError | None = None
        self.orders: list[dict[str, Any]] = []
        self.cancel_calls: list[str] = []
        self.account_calls = 0
        self.close_calls = 0

    async def get_account(self) -> AccountSnapshot:
        """Mock account query."""
        self.account_calls += 1
        if self.account_error is not None:
            raise self.account_error
        return AccountSnapshot(available_balance=self.balance, total_equity=self.balance)

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
        """Mock order placement."""
        if self.reject_orders:
            raise VenueAPIError(f"{self.name} rejected order", code=10001)

        self.orders.append(
            {
                "symbol": symbol,
                "side": side,
                "type": order_type,
                "size": size,
                "price": price,
                "time_in_force": time_in_force,
                "reduce_only": reduce_only,
            }
        )
        return OrderHandle(order_id=f"{self.name}-{len(self.orders)}", symbol=symbol, side=side)

    async def cancel_all_orders(self, symbol: str) -> None:
        """Mock cancel-all."""
        self.cancel_calls.append(symbol)

    async def close(self) -> None:
        """Mock close."""
        self.close_calls += 1
