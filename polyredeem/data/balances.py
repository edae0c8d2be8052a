"""Holder balance inspection on the ConditionalTokens contract."""

from __future__ import annotations

from eth_abi import encode

from polyredeem.core.logging import get_logger
from polyredeem.execution.contracts import (
    BALANCE_OF_SEL,
    COLLECTION_ID_SEL,
    CTF_ADDRESS,
    OUTCOME_SLOT_COUNT_SEL,
    POSITION_ID_SEL,
    USDC_ADDRESS,
    ZERO_BYTES32,
    condition_bytes,
    decode_uint,
    index_set,
    to_checksum,
)
from polyredeem.execution.rpc import PolygonRPC
from polyredeem.models.redemption import BalanceSnapshot

log = get_logger(__name__)


class BalanceInspector:
    """Reads per-outcome ERC1155 balances for one holder and market.

    Position ids are derived on chain (getCollectionId -> getPositionId),
    so no market metadata is needed.
    """

    def __init__(self, rpc: PolygonRPC) -> None:
        self._rpc = rpc

    async def outcome_slot_count(self, condition_id: str) -> int:
        data = OUTCOME_SLOT_COUNT_SEL + encode(["bytes32"], [condition_bytes(condition_id)])
        return decode_uint(await self._rpc.eth_call(CTF_ADDRESS, data))

    async def position_id(self, condition_id: str, outcome_index: int) -> int:
        collection_data = COLLECTION_ID_SEL + encode(
            ["bytes32", "bytes32", "uint256"],
            [ZERO_BYTES32, condition_bytes(condition_id), index_set(outcome_index)],
        )
        collection_id = (await self._rpc.eth_call(CTF_ADDRESS, collection_data))[:32]
        position_data = POSITION_ID_SEL + encode(
            ["address", "bytes32"],
            [to_checksum(USDC_ADDRESS), collection_id],
        )
        return decode_uint(await self._rpc.eth_call(CTF_ADDRESS, position_data))

    async def balance_of(self, holder: str, position_id: int) -> int:
        data = BALANCE_OF_SEL + encode(["address", "uint256"], [to_checksum(holder), position_id])
        return decode_uint(await self._rpc.eth_call(CTF_ADDRESS, data))

    async def get_balances(self, condition_id: str, holder: str) -> BalanceSnapshot:
        """Snapshot the holder's non-zero balances, keyed by outcome index.

        Never raises: lookup failures come back as ``error`` on the snapshot.
        """
        try:
            slots = await self.outcome_slot_count(condition_id)
            balances: dict[int, int] = {}
            for i in range(slots):
                amount = await self.balance_of(holder, await self.position_id(condition_id, i))
                if amount > 0:
                    balances[i] = amount
        except Exception as exc:
            log.warning(
                "balances.lookup_failed",
                condition_id=condition_id[:16],
                error=str(exc)[:200],
            )
            return BalanceSnapshot(condition_id=condition_id, holder=holder, error=str(exc))

        log.debug(
            "balances.snapshot",
            condition_id=condition_id[:16],
            slots=slots,
            balances=balances,
        )
        return BalanceSnapshot(condition_id=condition_id, holder=holder, balances=balances)
