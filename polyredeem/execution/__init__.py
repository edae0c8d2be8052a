"""Execution layer: RPC, transaction submission, redemption and funding."""

from __future__ import annotations

from polyredeem.execution.funding import ClobCollateralSource, wait_for_minimum_balance
from polyredeem.execution.redeemer import Redeemer
from polyredeem.execution.rpc import PolygonRPC
from polyredeem.execution.transactions import TransactionSender

__all__ = [
    "ClobCollateralSource",
    "PolygonRPC",
    "Redeemer",
    "TransactionSender",
    "wait_for_minimum_balance",
]
