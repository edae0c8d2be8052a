"""Batch reconciliation: find settled markets and claim winning positions.

One per-market procedure drives every entry mode. Candidates come from a
``CandidateProvider`` (the position ledger or the closed-market listing),
each market goes oracle -> balances -> redeemer strictly in sequence, and
every outcome, failure included, becomes a ``RedemptionOutcome`` record.
Redemptions are never run concurrently: they share the account nonce.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from polyredeem.core.logging import get_logger, log_redemption_event
from polyredeem.interfaces import Candidate
from polyredeem.models.redemption import (
    BatchSummary,
    MarketCheck,
    RedemptionOutcome,
    ResolutionState,
    ResolutionStatus,
)

if TYPE_CHECKING:
    from polyredeem.data.market_listing import MarketListing
    from polyredeem.interfaces import (
        BalanceSource,
        CandidateProvider,
        LedgerStore,
        RedemptionSubmitter,
        ResolutionSource,
    )
    from polyredeem.models.redemption import BalanceSnapshot

log = get_logger(__name__)


class LedgerCandidates:
    """Every market in the position ledger, in insertion order."""

    source = "ledger"

    def __init__(self, ledger: LedgerStore) -> None:
        self._ledger = ledger

    async def candidates(self) -> list[Candidate]:
        return [Candidate(condition_id=e.condition_id) for e in self._ledger.all()]


class ListingCandidates:
    """The first ``max_markets`` closed markets from the Gamma listing."""

    source = "listing"

    def __init__(self, listing: MarketListing, max_markets: int) -> None:
        if max_markets <= 0:
            msg = f"max_markets must be > 0, got {max_markets}"
            raise ValueError(msg)
        self._listing = listing
        self._max_markets = max_markets

    async def candidates(self) -> list[Candidate]:
        markets = await self._listing.closed_markets(self._max_markets)
        return [Candidate(condition_id=m.condition_id, title=m.question or None) for m in markets]


class BatchReconciler:
    """Checks candidates for settlement and redeems winning positions."""

    def __init__(
        self,
        oracle: ResolutionSource,
        balances: BalanceSource,
        redeemer: RedemptionSubmitter,
        holder: str,
        ledger: LedgerStore | None = None,
    ) -> None:
        self._oracle = oracle
        self._balances = balances
        self._redeemer = redeemer
        self._holder = holder
        self._ledger = ledger

    # ------------------------------------------------------------------
    # Per-market procedure
    # ------------------------------------------------------------------

    async def _process(
        self,
        candidate: Candidate,
        dry_run: bool,
        prune_ledger: bool,
    ) -> tuple[RedemptionOutcome, ResolutionStatus, BalanceSnapshot | None]:
        condition_id = candidate.condition_id
        cid = condition_id[:16]

        status = await self._oracle.check_resolution(condition_id)
        title = status.market_title or candidate.title
        if not status.is_resolved:
            log.info("reconcile.not_resolved", condition_id=cid, state=status.state.value)
            outcome = RedemptionOutcome(
                condition_id=condition_id,
                market_title=title,
                reason=status.reason,
            )
            return outcome, status, None

        snapshot = await self._balances.get_balances(condition_id, self._holder)
        fields = {
            "condition_id": condition_id,
            "is_resolved": True,
            "winning_indices": status.winning_indices,
            "market_title": title,
            "reason": status.reason,
            "balances": snapshot.balances,
            "has_position": snapshot.has_position,
        }
        if snapshot.error is not None:
            log.warning("reconcile.balance_error", condition_id=cid, error=snapshot.error[:200])
            return (
                RedemptionOutcome(error=f"balance lookup failed: {snapshot.error}", **fields),
                status,
                snapshot,
            )

        if snapshot.winning_balance(status.winning_indices) <= 0:
            log.info("reconcile.no_winning_tokens", condition_id=cid)
            return RedemptionOutcome(**fields), status, snapshot

        fields["has_winning_tokens"] = True
        if dry_run:
            log_redemption_event("dry_run", condition_id)
            return RedemptionOutcome(would_redeem=True, **fields), status, snapshot

        try:
            receipt = await self._redeemer.redeem(condition_id, status.outcome_slots)
        except Exception as exc:
            log.warning("reconcile.redeem_failed", condition_id=cid, error=str(exc)[:200])
            return RedemptionOutcome(error=str(exc) or type(exc).__name__, **fields), status, snapshot

        log.info("reconcile.redeemed", condition_id=cid, tx_hash=receipt.tx_hash)
        if prune_ledger and self._ledger is not None:
            # Only after the receipt confirmed the claim.
            try:
                if self._ledger.remove(condition_id):
                    log_redemption_event("pruned", condition_id, tx_hash=receipt.tx_hash)
            except Exception as exc:
                log.error("reconcile.prune_failed", condition_id=cid, error=str(exc)[:200])
        return RedemptionOutcome(redeemed=True, receipt=receipt, **fields), status, snapshot

    async def _process_safely(
        self,
        candidate: Candidate,
        dry_run: bool,
        prune_ledger: bool,
    ) -> tuple[RedemptionOutcome, ResolutionStatus, BalanceSnapshot | None]:
        try:
            return await self._process(candidate, dry_run, prune_ledger)
        except Exception as exc:
            log.error(
                "reconcile.market_failed",
                condition_id=candidate.condition_id[:16],
                error=str(exc)[:200],
            )
            status = ResolutionStatus(
                condition_id=candidate.condition_id,
                state=ResolutionState.INDETERMINATE,
                reason=f"processing failed: {exc}",
            )
            outcome = RedemptionOutcome(
                condition_id=candidate.condition_id,
                market_title=candidate.title,
                error=str(exc) or type(exc).__name__,
                reason=status.reason,
            )
            return outcome, status, None

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def run(
        self,
        provider: CandidateProvider,
        dry_run: bool = False,
        prune_ledger: bool = False,
    ) -> BatchSummary:
        """Process every candidate of ``provider`` in order and summarise.

        Args:
            provider: Source of candidate markets.
            dry_run: Classify only; never submit or touch the ledger.
            prune_ledger: Drop a ledger entry once its redemption confirmed.
                Ignored for non-ledger sources and in dry-run mode.
        """
        candidates = await provider.candidates()
        prune = prune_ledger and not dry_run and provider.source == "ledger"
        log.info(
            "reconcile.start",
            source=provider.source,
            candidates=len(candidates),
            dry_run=dry_run,
            prune_ledger=prune,
        )

        results: list[RedemptionOutcome] = []
        for candidate in candidates:
            outcome, _, _ = await self._process_safely(candidate, dry_run, prune)
            results.append(outcome)

        summary = BatchSummary.from_results(provider.source, results, dry_run=dry_run)
        log.info(
            "reconcile.complete",
            source=summary.source,
            total=summary.total,
            resolved=summary.resolved,
            with_winning_tokens=summary.with_winning_tokens,
            redeemed=summary.redeemed,
            failed=summary.failed,
        )
        return summary

    async def redeem_from_ledger(
        self,
        dry_run: bool = False,
        clear_holdings_after_redeem: bool = False,
    ) -> BatchSummary:
        if self._ledger is None:
            msg = "ledger-sourced reconciliation needs a position ledger"
            raise ValueError(msg)
        return await self.run(
            LedgerCandidates(self._ledger),
            dry_run=dry_run,
            prune_ledger=clear_holdings_after_redeem,
        )

    async def redeem_from_listing(
        self,
        listing: MarketListing,
        max_markets: int = 1000,
        dry_run: bool = False,
    ) -> BatchSummary:
        return await self.run(ListingCandidates(listing, max_markets), dry_run=dry_run)

    async def check_market(self, condition_id: str, redeem: bool = False) -> MarketCheck:
        """Diagnose one market, optionally redeeming it.

        The same per-market procedure as a batch pass, with redemption
        switched on only when ``redeem`` is set.
        """
        outcome, status, snapshot = await self._process_safely(
            Candidate(condition_id=condition_id),
            dry_run=not redeem,
            prune_ledger=False,
        )
        return MarketCheck(status=status, balances=snapshot, outcome=outcome)
