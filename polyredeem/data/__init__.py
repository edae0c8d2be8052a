"""Data sources: resolution oracle, balances, ledger and market listing."""

from __future__ import annotations

from polyredeem.data.balances import BalanceInspector
from polyredeem.data.holdings import PositionLedger
from polyredeem.data.market_listing import MarketListing
from polyredeem.data.resolution import ResolutionOracle

__all__ = [
    "BalanceInspector",
    "MarketListing",
    "PositionLedger",
    "ResolutionOracle",
]
