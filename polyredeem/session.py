"""Trading session bootstrap.

Order of operations: API credential, CLOB client, USDC allowances, the
funding gate, an optional wait for the next market boundary, and only then
``strategy.start()``. Nothing trades before the funding gate is satisfied.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

from polyredeem.config.settings import Settings
from polyredeem.core.logging import get_logger
from polyredeem.execution.allowance import approve_usdc_allowance, sync_clob_allowance
from polyredeem.execution.funding import ClobCollateralSource, wait_for_minimum_balance
from polyredeem.execution.rpc import PolygonRPC
from polyredeem.execution.transactions import TransactionSender
from polyredeem.interfaces import CollateralSource, Strategy
from polyredeem.security.credentials import create_credential

log = get_logger(__name__)

_SIGNATURE_TYPE_SAFE = 2


def seconds_until_next_boundary(now: datetime | None = None, minutes: int = 15) -> float:
    """Seconds from ``now`` until the next ``minutes``-aligned wall-clock boundary."""
    now = now or datetime.now(tz=UTC)
    floored = now.replace(second=0, microsecond=0)
    next_minute = (floored.minute // minutes + 1) * minutes
    boundary = floored.replace(minute=0) + timedelta(minutes=next_minute)
    return max(0.0, (boundary - now).total_seconds())


def build_clob_client(settings: Settings, creds: Any) -> Any | None:
    """Authenticated py-clob-client instance, or None when it cannot be built."""
    if not settings.private_key:
        log.error("session.missing_private_key")
        return None
    try:
        from py_clob_client.client import ClobClient

        return ClobClient(
            host=settings.clob_url,
            chain_id=settings.chain_id,
            key=settings.private_key,
            creds=creds,
            signature_type=_SIGNATURE_TYPE_SAFE if settings.funder_address else None,
            funder=settings.funder_address or None,
        )
    except Exception as exc:
        log.error("session.clob_client_failed", error=str(exc)[:200])
        return None


async def _ensure_allowances(settings: Settings, clob_client: Any) -> None:
    rpc = PolygonRPC(settings.rpc_url, timeout=settings.request_timeout_seconds)
    try:
        sender = TransactionSender(
            rpc,
            settings.private_key,
            funder=settings.funder_address or None,
            chain_id=settings.chain_id,
        )
        log.info("session.approving_allowances")
        await approve_usdc_allowance(sender, rpc, receipt_timeout=settings.receipt_timeout_seconds)
        log.info("session.syncing_clob_allowance")
        await sync_clob_allowance(clob_client)
    finally:
        await rpc.close()


async def run_session(
    strategy_factory: Callable[[Any], Strategy],
    settings: Settings,
    *,
    clob_client: Any | None = None,
    collateral: CollateralSource | None = None,
) -> int:
    """Bootstrap a trading session and start the strategy.

    Returns a process exit code: 0 once the strategy was started, 1 when the
    session could not be set up.
    """
    log.info("session.starting")

    if clob_client is None:
        creds = create_credential(
            settings.private_key,
            clob_url=settings.clob_url,
            chain_id=settings.chain_id,
            path=settings.credential_path,
        )
        if creds is not None:
            log.info("session.credentials_ready")
        clob_client = build_clob_client(settings, creds)
    if clob_client is None:
        log.error("session.no_clob_client", action="cannot continue")
        return 1

    try:
        await _ensure_allowances(settings, clob_client)
    except Exception as exc:
        log.warning(
            "session.allowance_failed",
            error=str(exc)[:200],
            action="continuing without allowances; orders may fail",
        )

    result = await wait_for_minimum_balance(
        collateral or ClobCollateralSource(clob_client),
        settings.min_usdc_balance,
        poll_interval_ms=settings.poll_interval_ms,
        timeout_ms=settings.timeout_ms,
        log_every_poll=settings.log_every_poll,
    )
    log.info(
        "session.funding_gate",
        ok=result.ok,
        available=result.available,
        allowance=result.allowance,
        balance=result.balance,
    )
    if not result.ok:
        return 1

    if settings.wait_for_next_market_start:
        delay = seconds_until_next_boundary(minutes=settings.market_interval_minutes)
        log.info("session.waiting_for_market_start", seconds=round(delay))
        await asyncio.sleep(delay)
    else:
        log.info("session.skip_market_start_wait")

    strategy = strategy_factory(clob_client)
    started = strategy.start()
    if inspect.isawaitable(started):
        await started
    log.info("session.strategy_started", strategy=type(strategy).__name__)
    return 0
