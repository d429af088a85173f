"""Venue REST clients."""

from crossarb.exchange.apex import ApexClient
from crossarb.exchange.bybit import BybitClient
from crossarb.exchange.client import VenueAPIError, VenueClient, VenueError
from crossarb.exchange.signer import ApexSigner, BybitSigner, HmacSigner


__all__ = [
    "ApexClient",
    "ApexSigner",
    "BybitClient",
    "BybitSigner",
    "HmacSigner",
    "VenueAPIError",
    "VenueClient",
    "VenueError",
]
