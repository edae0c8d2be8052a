"""Protocol interfaces for polyredeem components.

The reconciler and the funding gate code against these contracts so the
on-chain and HTTP implementations can be swapped for fakes in tests.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from polyredeem.models.holdings import LedgerEntry
    from polyredeem.models.redemption import BalanceSnapshot, Receipt, ResolutionStatus


@dataclass(frozen=True)
class Candidate:
    """A market to be checked by a reconciliation pass."""

    condition_id: str
    title: str | None = None


@runtime_checkable
class ResolutionSource(Protocol):
    """Classifies a market's settlement status."""

    async def check_resolution(self, condition_id: str) -> ResolutionStatus: ...


@runtime_checkable
class BalanceSource(Protocol):
    """Reads a holder's per-outcome token balances."""

    async def get_balances(self, condition_id: str, holder: str) -> BalanceSnapshot: ...


@runtime_checkable
class RedemptionSubmitter(Protocol):
    """Submits a claim transaction and waits for confirmation."""

    async def redeem(self, condition_id: str, outcome_slots: int = 2) -> Receipt: ...


@runtime_checkable
class CandidateProvider(Protocol):
    """Supplies the ordered set of markets for one pass."""

    @property
    def source(self) -> str: ...

    async def candidates(self) -> list[Candidate]: ...


@runtime_checkable
class LedgerStore(Protocol):
    """Keyed position record store with read-all and delete-by-key."""

    def all(self) -> list[LedgerEntry]: ...

    def remove(self, condition_id: str) -> bool: ...


@runtime_checkable
class CollateralSource(Protocol):
    """Reports collateral balance and spending allowance in base units."""

    async def get_collateral(self) -> tuple[int, int]: ...


@runtime_checkable
class Strategy(Protocol):
    """A pre-built trading strategy; only ``start`` is used."""

    def start(self) -> object: ...
