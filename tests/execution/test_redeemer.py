"""Tests for Redeemer."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from polyredeem.errors import RedemptionError, RPCError
from polyredeem.execution.contracts import CTF_ADDRESS, REDEEM_SEL
from polyredeem.execution.redeemer import Redeemer

CID = "0x" + "ab" * 32


def _sender(tx_hash: str = "0xtx1", uses_safe: bool = False) -> MagicMock:
    sender = MagicMock()
    sender.send = AsyncMock(return_value=tx_hash)
    sender.uses_safe = uses_safe
    return sender


def _rpc(receipt: dict | None) -> MagicMock:
    rpc = MagicMock()
    rpc.wait_for_receipt = AsyncMock(return_value=receipt)
    return rpc


class TestRedeemer:
    @pytest.mark.asyncio()
    async def test_successful_redemption(self) -> None:
        sender = _sender()
        rpc = _rpc({"status": "0x1", "blockNumber": "0x1f4", "gasUsed": "0x5208"})
        redeemer = Redeemer(rpc, sender, receipt_timeout=30)

        receipt = await redeemer.redeem(CID)

        assert receipt.tx_hash == "0xtx1"
        assert receipt.block_number == 500
        assert receipt.gas_used == 21000
        assert receipt.via_safe is False
        to, data = sender.send.await_args.args
        assert to == CTF_ADDRESS
        assert data[:4] == REDEEM_SEL
        rpc.wait_for_receipt.assert_awaited_once_with("0xtx1", timeout=30)

    @pytest.mark.asyncio()
    async def test_via_safe_flag_on_receipt(self) -> None:
        redeemer = Redeemer(_rpc({"status": "0x1"}), _sender(uses_safe=True))
        receipt = await redeemer.redeem(CID)
        assert receipt.via_safe is True
        assert receipt.block_number is None

    @pytest.mark.asyncio()
    async def test_empty_condition_id(self) -> None:
        sender = _sender()
        with pytest.raises(RedemptionError, match="empty condition id"):
            await Redeemer(_rpc(None), sender).redeem("")
        sender.send.assert_not_awaited()

    @pytest.mark.asyncio()
    async def test_rejected_transaction(self) -> None:
        sender = _sender()
        sender.send = AsyncMock(side_effect=RPCError("RPC error: insufficient funds for gas"))
        with pytest.raises(RedemptionError, match="transaction rejected: .*insufficient funds") as info:
            await Redeemer(_rpc(None), sender).redeem(CID)
        assert info.value.condition_id == CID
        assert info.value.tx_hash is None

    @pytest.mark.asyncio()
    async def test_receipt_timeout(self) -> None:
        with pytest.raises(RedemptionError, match="not confirmed within 60s") as info:
            await Redeemer(_rpc(None), _sender()).redeem(CID)
        assert info.value.tx_hash == "0xtx1"

    @pytest.mark.asyncio()
    async def test_receipt_lookup_failure(self) -> None:
        rpc = MagicMock()
        rpc.wait_for_receipt = AsyncMock(side_effect=RPCError("RPC error: gone"))
        with pytest.raises(RedemptionError, match="receipt lookup failed"):
            await Redeemer(rpc, _sender()).redeem(CID)

    @pytest.mark.asyncio()
    async def test_reverted_transaction(self) -> None:
        with pytest.raises(RedemptionError, match="reverted") as info:
            await Redeemer(_rpc({"status": "0x0"}), _sender("0xbad")).redeem(CID)
        assert info.value.tx_hash == "0xbad"
