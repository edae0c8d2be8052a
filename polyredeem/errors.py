"""Exception hierarchy for polyredeem."""

from __future__ import annotations


class PolyRedeemError(Exception):
    """Base class for all polyredeem errors."""


class RPCError(PolyRedeemError):
    """Raised when the Polygon JSON-RPC node returns an error or garbage."""


class LedgerError(PolyRedeemError):
    """Raised when the position ledger cannot be read or written."""


class RedemptionError(PolyRedeemError):
    """Raised when a claim transaction is rejected, reverts or times out."""

    def __init__(self, condition_id: str, cause: str, tx_hash: str | None = None) -> None:
        self.condition_id = condition_id
        self.cause = cause
        self.tx_hash = tx_hash
        super().__init__(cause)
