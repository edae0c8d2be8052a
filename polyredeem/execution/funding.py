"""Funding gate: block session start until collateral is available."""

from __future__ import annotations

import asyncio
import time
from typing import Any

from polyredeem.core.logging import get_logger
from polyredeem.interfaces import CollateralSource
from polyredeem.models.funding import FundingResult

logger = get_logger(__name__)


def _to_base_units(value: Any) -> int:
    if value is None or value == "":
        return 0
    return int(str(value).split(".")[0])


def parse_balance_allowance(resp: Any) -> tuple[int, int]:
    """Extract (balance, allowance) in base units from a CLOB response.

    Older API versions return a single ``allowance``; newer ones return an
    ``allowances`` mapping per exchange contract, of which the smallest
    one limits what can be spent.
    """
    if not isinstance(resp, dict):
        return _to_base_units(resp), 0
    balance = _to_base_units(resp.get("balance"))
    if "allowance" in resp:
        return balance, _to_base_units(resp.get("allowance"))
    allowances = resp.get("allowances") or {}
    if isinstance(allowances, dict) and allowances:
        return balance, min(_to_base_units(v) for v in allowances.values())
    return balance, 0


class ClobCollateralSource:
    """USDC balance and allowance as reported by the CLOB API.

    py-clob-client is synchronous; calls run in a worker thread.
    """

    def __init__(self, clob_client: Any) -> None:
        self._clob_client = clob_client

    async def get_collateral(self) -> tuple[int, int]:
        from py_clob_client.clob_types import AssetType, BalanceAllowanceParams

        params = BalanceAllowanceParams(asset_type=AssetType.COLLATERAL)
        resp = await asyncio.to_thread(self._clob_client.get_balance_allowance, params)
        return parse_balance_allowance(resp)


async def wait_for_minimum_balance(
    client: CollateralSource,
    min_balance: int,
    poll_interval_ms: int = 15_000,
    timeout_ms: int = 0,
    log_every_poll: bool = False,
) -> FundingResult:
    """Poll until ``min(balance, allowance) >= min_balance``.

    Args:
        client: Collateral source queried once per tick.
        min_balance: Threshold in USDC base units.
        poll_interval_ms: Sleep between ticks.
        timeout_ms: Give up after this long; 0 waits forever.
        log_every_poll: Log every tick instead of only the first and last.

    Returns:
        ``ok=True`` as soon as the threshold is met, ``ok=False`` only when a
        finite timeout elapsed first.
    """
    deadline = time.monotonic() + timeout_ms / 1000 if timeout_ms > 0 else None
    polls = 0
    balance = allowance = available = 0

    while True:
        polls += 1
        try:
            balance, allowance = await client.get_collateral()
        except Exception as exc:
            logger.warning("funding.poll_failed", poll=polls, error=str(exc)[:200])
            balance = allowance = 0
        available = min(balance, allowance)

        if available >= min_balance:
            logger.info(
                "funding.satisfied",
                polls=polls,
                available=available,
                balance=balance,
                allowance=allowance,
                min_balance=min_balance,
            )
            return FundingResult(
                ok=True, available=available, allowance=allowance,
                balance=balance, polls=polls,
            )

        if log_every_poll or polls == 1:
            logger.info(
                "funding.waiting",
                poll=polls,
                available=available,
                balance=balance,
                allowance=allowance,
                min_balance=min_balance,
                next_poll_ms=poll_interval_ms,
            )

        if deadline is not None and time.monotonic() + poll_interval_ms / 1000 > deadline:
            logger.warning("funding.timed_out", polls=polls, available=available, timeout_ms=timeout_ms)
            return FundingResult(
                ok=False, available=available, allowance=allowance,
                balance=balance, polls=polls,
            )

        await asyncio.sleep(poll_interval_ms / 1000)
