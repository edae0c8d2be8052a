"""Resolution, balance and redemption outcome models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class ResolutionState(str, Enum):
    UNRESOLVED = "unresolved"
    RESOLVED = "resolved"
    INDETERMINATE = "indeterminate"


class ResolutionStatus(BaseModel):
    """Settlement classification of one market at query time.

    ``indeterminate`` means the sources disagreed or were unreachable and
    must be treated exactly like ``unresolved``.
    """

    condition_id: str
    state: ResolutionState
    winning_indices: tuple[int, ...] = ()
    reason: str = ""
    market_title: str | None = None
    outcome: str | None = None
    outcome_slots: int = 2

    @property
    def is_resolved(self) -> bool:
        return self.state == ResolutionState.RESOLVED

    model_config = {"frozen": True}


class BalanceSnapshot(BaseModel):
    """Per-outcome token balances (base units) of one holder on one market."""

    condition_id: str
    holder: str
    balances: dict[int, int] = Field(default_factory=dict)
    error: str | None = None

    @property
    def has_position(self) -> bool:
        return any(amount > 0 for amount in self.balances.values())

    def winning_balance(self, winning_indices: tuple[int, ...] | list[int]) -> int:
        return sum(self.balances.get(i, 0) for i in winning_indices)

    model_config = {"frozen": True}


class Receipt(BaseModel):
    """Confirmation of a mined redemption transaction."""

    tx_hash: str
    block_number: int | None = None
    gas_used: int | None = None
    via_safe: bool = False

    model_config = {"frozen": True}


class RedemptionOutcome(BaseModel):
    """Result of processing one condition id within a batch pass."""

    condition_id: str
    is_resolved: bool = False
    has_winning_tokens: bool = False
    redeemed: bool = False
    error: str | None = None
    receipt: Receipt | None = None
    has_position: bool = False
    would_redeem: bool = False
    winning_indices: tuple[int, ...] = ()
    balances: dict[int, int] = Field(default_factory=dict)
    market_title: str | None = None
    reason: str = ""

    @property
    def failed(self) -> bool:
        """True when a redemption was attempted and did not confirm."""
        return self.has_winning_tokens and not self.would_redeem and not self.redeemed

    model_config = {"frozen": True}


class BatchSummary(BaseModel):
    """Aggregated counters and ordered records of one reconciliation pass."""

    source: str
    dry_run: bool = False
    total: int = 0
    with_positions: int = 0
    resolved: int = 0
    with_winning_tokens: int = 0
    redeemed: int = 0
    failed: int = 0
    results: list[RedemptionOutcome] = Field(default_factory=list)

    @classmethod
    def from_results(
        cls,
        source: str,
        results: list[RedemptionOutcome],
        dry_run: bool = False,
    ) -> BatchSummary:
        return cls(
            source=source,
            dry_run=dry_run,
            total=len(results),
            with_positions=sum(1 for r in results if r.has_position),
            resolved=sum(1 for r in results if r.is_resolved),
            with_winning_tokens=sum(1 for r in results if r.has_winning_tokens),
            redeemed=sum(1 for r in results if r.redeemed),
            failed=sum(1 for r in results if r.failed),
            results=list(results),
        )

    model_config = {"frozen": True}


class MarketCheck(BaseModel):
    """Single-market diagnostic: resolution, balances and the outcome record."""

    status: ResolutionStatus
    balances: BalanceSnapshot | None = None
    outcome: RedemptionOutcome
