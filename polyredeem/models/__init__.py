from polyredeem.models.funding import FundingResult
from polyredeem.models.holdings import LedgerEntry
from polyredeem.models.redemption import (
    BalanceSnapshot,
    BatchSummary,
    MarketCheck,
    Receipt,
    RedemptionOutcome,
    ResolutionState,
    ResolutionStatus,
)

__all__ = [
    "BalanceSnapshot",
    "BatchSummary",
    "FundingResult",
    "LedgerEntry",
    "MarketCheck",
    "Receipt",
    "RedemptionOutcome",
    "ResolutionState",
    "ResolutionStatus",
]
