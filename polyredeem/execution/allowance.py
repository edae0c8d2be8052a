"""USDC allowance bootstrap for the Polymarket exchange contracts."""

from __future__ import annotations

import asyncio
from typing import Any

from eth_abi import encode

from polyredeem.core.logging import get_logger
from polyredeem.execution.contracts import (
    ALLOWANCE_SEL,
    APPROVE_SEL,
    CTF_EXCHANGE,
    MAX_UINT256,
    NEG_RISK_ADAPTER,
    NEG_RISK_CTF_EXCHANGE,
    USDC_ADDRESS,
    decode_uint,
    to_checksum,
)
from polyredeem.execution.rpc import PolygonRPC
from polyredeem.execution.transactions import TransactionSender

logger = get_logger(__name__)

EXCHANGE_SPENDERS = (CTF_EXCHANGE, NEG_RISK_CTF_EXCHANGE, NEG_RISK_ADAPTER)

# Anything above this is treated as an unlimited approval already in place.
_SUFFICIENT_ALLOWANCE = MAX_UINT256 // 2


async def usdc_allowance(rpc: PolygonRPC, owner: str, spender: str) -> int:
    data = ALLOWANCE_SEL + encode(["address", "address"], [to_checksum(owner), to_checksum(spender)])
    return decode_uint(await rpc.eth_call(USDC_ADDRESS, data))


async def approve_usdc_allowance(
    sender: TransactionSender,
    rpc: PolygonRPC,
    spenders: tuple[str, ...] = EXCHANGE_SPENDERS,
    receipt_timeout: float = 60.0,
) -> list[str]:
    """Grant unlimited USDC allowance to each spender that lacks one.

    Returns the hashes of the approval transactions that were sent.
    Raises on RPC failure; callers decide whether that is fatal.
    """
    tx_hashes: list[str] = []
    for spender in spenders:
        current = await usdc_allowance(rpc, sender.holder, spender)
        if current >= _SUFFICIENT_ALLOWANCE:
            logger.debug("allowance.already_approved", spender=spender[:10])
            continue
        call_data = APPROVE_SEL + encode(["address", "uint256"], [to_checksum(spender), MAX_UINT256])
        tx_hash = await sender.send(USDC_ADDRESS, call_data)
        logger.info("allowance.approve_sent", spender=spender[:10], tx_hash=tx_hash)
        receipt = await rpc.wait_for_receipt(tx_hash, timeout=receipt_timeout)
        if receipt is None:
            logger.warning("allowance.approve_unconfirmed", spender=spender[:10], tx_hash=tx_hash)
        tx_hashes.append(tx_hash)
    return tx_hashes


async def sync_clob_allowance(clob_client: Any) -> Any:
    """Ask the CLOB to refresh its view of our on-chain collateral allowance."""
    from py_clob_client.clob_types import AssetType, BalanceAllowanceParams

    params = BalanceAllowanceParams(asset_type=AssetType.COLLATERAL)
    resp = await asyncio.to_thread(clob_client.update_balance_allowance, params)
    logger.info("allowance.clob_synced")
    return resp
