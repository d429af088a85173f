"""
Pydantic models for Apex Pro and Bybit V5 API responses.

Both venues send numeric values as strings; models keep the raw strings
and expose float properties, as the order path never needs them parsed.
"""

from typing import Generic, TypeVar

from pydantic import BaseModel, Field


T = TypeVar("T")


def _to_float(value: str) -> float:
    """Parse a venue number, treating an empty string as zero."""
    return float(value) if value else 0.0


# =============================================================================
# Apex Pro
# =============================================================================


class ApexEnvelope(BaseModel, Generic[T]):
    """Apex response wrapper: ``{"data": ...}``."""

    data: T


class ApexAccount(BaseModel):
    """Account summary."""

    equity_value: str = Field(default="", alias="equityValue")
    available_value: str = Field(default="", alias="availableValue")

    model_config = {"populate_by_name": True}

    @property
    def equity(self) -> float:
        """Get total equity as float."""
        return _to_float(self.equity_value)

    @property
    def available(self) -> float:
        """Get available balance as float."""
        return _to_float(self.available_value)


class ApexOrder(BaseModel):
    """Order as returned by the order and open-orders endpoints."""

    id: str
    symbol: str = ""
    side: str = ""
    type: str = ""
    price: str = ""
    size: str = ""
    filled_size: str = Field(default="", alias="filledSize")
    status: str = ""
    created_at: int = Field(default=0, alias="createdAt")

    model_config = {"populate_by_name": True}

    @property
    def filled_size_float(self) -> float:
        """Get filled size as float."""
        return _to_float(self.filled_size)


# =============================================================================
# Bybit V5
# =============================================================================


class BybitEnvelope(BaseModel, Generic[T]):
    """Bybit response wrapper: ``{"retCode", "retMsg", "result"}``."""

    ret_code: int = Field(alias="retCode")
    ret_msg: str = Field(default="", alias="retMsg")
    result: T

    model_config = {"populate_by_name": True}


class BybitWalletAccount(BaseModel):
    """One account entry of the wallet-balance response."""

    account_type: str = Field(default="", alias="accountType")
    total_equity: str = Field(default="", alias="totalEquity")
    total_available_balance: str = Field(default="", alias="totalAvailableBalance")

    model_config = {"populate_by_name": True}

    @property
    def equity(self) -> float:
        """Get total equity as float."""
        return _to_float(self.total_equity)

    @property
    def available(self) -> float:
        """Get available balance as float."""
        return _to_float(self.total_available_balance)


class BybitWalletBalance(BaseModel):
    """Wallet-balance result."""

    accounts: list[BybitWalletAccount] = Field(default_factory=list, alias="list")

    model_config = {"populate_by_name": True}


class BybitOrderCreated(BaseModel):
    """Order-create result."""

    order_id: str = Field(alias="orderId")
    order_link_id: str = Field(default="", alias="orderLinkId")

    model_config = {"populate_by_name": True}


class BybitOrder(BaseModel):
    """Open order from the realtime endpoint."""

    order_id: str = Field(alias="orderId")
    symbol: str = ""
    side: str = ""
    order_type: str = Field(default="", alias="orderType")
    price: str = ""
    qty: str = ""
    cum_exec_qty: str = Field(default="", alias="cumExecQty")
    order_status: str = Field(default="", alias="orderStatus")

    model_config = {"populate_by_name": True}

    @property
    def cum_exec_qty_float(self) -> float:
        """Get executed quantity as float."""
        return _to_float(self.cum_exec_qty)


class BybitOrderList(BaseModel):
    """Open-orders result."""

    orders: list[BybitOrder] = Field(default_factory=list, alias="list")

    model_config = {"populate_by_name": True}
