"""Market resolution oracle: CLOB market API cross-checked against chain state."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx
from eth_abi import encode

from polyredeem.core.logging import get_logger
from polyredeem.execution.contracts import (
    CTF_ADDRESS,
    OUTCOME_SLOT_COUNT_SEL,
    PAYOUT_DENOMINATOR_SEL,
    PAYOUT_NUMERATORS_SEL,
    condition_bytes,
    decode_uint,
)
from polyredeem.execution.rpc import PolygonRPC
from polyredeem.models.redemption import ResolutionState, ResolutionStatus

log = get_logger(__name__)

CLOB_API_URL = "https://clob.polymarket.com"


@dataclass(frozen=True)
class SourceView:
    """What one source says about a market."""

    resolved: bool = False
    winning_indices: tuple[int, ...] = ()
    error: str | None = None
    title: str | None = None
    outcome: str | None = None
    outcome_slots: int | None = None


def _parse_tokens(data: Any) -> list[dict[str, Any]]:
    """Token list of a CLOB market body; raises ValueError on a malformed one."""
    if not isinstance(data, dict):
        msg = f"malformed market response: expected object, got {type(data).__name__}"
        raise ValueError(msg)
    tokens = data.get("tokens") or []
    if not isinstance(tokens, list) or not all(isinstance(t, dict) for t in tokens):
        msg = "malformed market response: tokens must be a list of objects"
        raise ValueError(msg)
    return tokens


def _fmt(indices: tuple[int, ...]) -> str:
    return "{" + ", ".join(str(i) for i in indices) + "}"


def combine_views(condition_id: str, api: SourceView, chain: SourceView) -> ResolutionStatus:
    """Fold the API and chain views into one status.

    The chain payout vector decides redeemability; the API only adds
    metadata and can raise a conflict.
    """
    base: dict[str, Any] = {
        "condition_id": condition_id,
        "market_title": api.title,
        "outcome": api.outcome,
    }

    if api.error and chain.error:
        return ResolutionStatus(
            state=ResolutionState.INDETERMINATE,
            reason=f"all sources failed: api={api.error}; chain={chain.error}",
            **base,
        )

    if chain.error:
        # API alone cannot prove the payout was reported on chain.
        return ResolutionStatus(
            state=ResolutionState.INDETERMINATE,
            reason=f"chain lookup failed ({chain.error}); api resolved={api.resolved}",
            **base,
        )

    if not api.error and api.resolved != chain.resolved:
        if api.resolved:
            reason = (
                f"sources disagree: api reports winners {_fmt(api.winning_indices)} "
                "but payout not yet reported on chain"
            )
        else:
            reason = (
                f"sources disagree: chain paid out winners {_fmt(chain.winning_indices)} "
                "but api reports market open"
            )
        return ResolutionStatus(state=ResolutionState.INDETERMINATE, reason=reason, **base)

    if not chain.resolved:
        reason = "market not resolved"
        if api.error:
            reason += f" (api error: {api.error})"
        return ResolutionStatus(state=ResolutionState.UNRESOLVED, reason=reason, **base)

    if api.resolved and api.winning_indices != chain.winning_indices:
        return ResolutionStatus(
            state=ResolutionState.INDETERMINATE,
            reason=(
                f"sources disagree: api winners {_fmt(api.winning_indices)}, "
                f"chain winners {_fmt(chain.winning_indices)}"
            ),
            **base,
        )

    reason = f"payout reported on chain, winners {_fmt(chain.winning_indices)}"
    if api.error:
        reason += f" (api error: {api.error})"
    return ResolutionStatus(
        state=ResolutionState.RESOLVED,
        winning_indices=chain.winning_indices,
        outcome_slots=chain.outcome_slots or 2,
        reason=reason,
        **base,
    )


class ResolutionOracle:
    """Classify a market as unresolved, resolved or indeterminate.

    Every call is computed fresh. Lookup failures never raise; they turn
    the status into ``indeterminate`` with the error in ``reason``.
    """

    def __init__(
        self,
        rpc: PolygonRPC,
        clob_url: str = CLOB_API_URL,
        timeout: float = 10.0,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._rpc = rpc
        self._clob_url = clob_url.rstrip("/")
        self._timeout = timeout
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._clob_url,
                timeout=httpx.Timeout(self._timeout),
            )
        return self._client

    async def api_view(self, condition_id: str) -> SourceView:
        """Read closed flag, winners and metadata from the CLOB market API."""
        try:
            client = await self._get_client()
            resp = await client.get(f"/markets/{condition_id}")
            resp.raise_for_status()
            data = resp.json()
            tokens = _parse_tokens(data)
        except Exception as exc:
            log.warning("resolution.api_failed", condition_id=condition_id[:16], error=str(exc)[:200])
            return SourceView(error=str(exc)[:200] or type(exc).__name__)

        winners = tuple(i for i, t in enumerate(tokens) if t.get("winner") is True)
        outcome = next((str(t.get("outcome", "")) for t in tokens if t.get("winner") is True), None)
        closed = bool(data.get("closed", False))
        return SourceView(
            resolved=closed and bool(winners),
            winning_indices=winners,
            title=data.get("question") or None,
            outcome=outcome,
            outcome_slots=len(tokens) or None,
        )

    async def chain_view(self, condition_id: str) -> SourceView:
        """Read the payout vector from the ConditionalTokens contract."""
        try:
            cid = condition_bytes(condition_id)
            denominator = decode_uint(await self._rpc.eth_call(
                CTF_ADDRESS, PAYOUT_DENOMINATOR_SEL + encode(["bytes32"], [cid]),
            ))
            if denominator == 0:
                return SourceView(resolved=False)
            slots = decode_uint(await self._rpc.eth_call(
                CTF_ADDRESS, OUTCOME_SLOT_COUNT_SEL + encode(["bytes32"], [cid]),
            ))
            winners: list[int] = []
            for i in range(slots):
                numerator = decode_uint(await self._rpc.eth_call(
                    CTF_ADDRESS,
                    PAYOUT_NUMERATORS_SEL + encode(["bytes32", "uint256"], [cid, i]),
                ))
                if numerator > 0:
                    winners.append(i)
        except Exception as exc:
            log.warning("resolution.chain_failed", condition_id=condition_id[:16], error=str(exc)[:200])
            return SourceView(error=str(exc)[:200] or type(exc).__name__)

        return SourceView(resolved=True, winning_indices=tuple(winners), outcome_slots=slots)

    async def check_resolution(self, condition_id: str) -> ResolutionStatus:
        if not condition_id:
            return ResolutionStatus(
                condition_id=condition_id,
                state=ResolutionState.INDETERMINATE,
                reason="empty condition id",
            )

        api = await self.api_view(condition_id)
        chain = await self.chain_view(condition_id)
        status = combine_views(condition_id, api, chain)
        log.info(
            "resolution.checked",
            condition_id=condition_id[:16],
            state=status.state.value,
            winners=list(status.winning_indices),
        )
        return status

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
