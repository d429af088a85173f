"""
Cross-Venue Spread Arbitrage Engine.

An asynchronous trading bot that watches top-of-book prices on two
venues (Apex Pro and Bybit) and executes hedged two-leg trades when
the cross-venue spread exceeds a threshold.
"""

__version__ = "1.0.0"
__author__ = "Tim"
